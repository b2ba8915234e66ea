"""
Tests for payload constructors and shared derived values.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from backend.app.engine.response_builder import (
    PALETTE,
    change_trend,
    comparison,
    distribution,
    pick_metric,
    ranked_list,
)
from backend.app.schema.query_schema import ListItem, QueryResponse, VisualizationType


class TestPayloads:
    def test_colors_cycle(self):
        data = comparison([(str(i), i) for i in range(len(PALETTE) + 1)])
        assert data.items[0].color == PALETTE[0]
        assert data.items[-1].color == PALETTE[0]

    def test_explicit_color_kept(self):
        data = comparison([("a", 1, "#000000"), ("b", 2)])
        assert data.items[0].color == "#000000"
        assert data.items[1].color == PALETTE[1]

    def test_distribution_total(self):
        data = distribution([("a", 3), ("b", 7)])
        assert data.total == 10
        assert data.share(data.items[1]) == pytest.approx(70.0)

    def test_distribution_explicit_total(self):
        data = distribution([("a", 3)], total=12)
        assert data.total == 12
        assert data.share(data.items[0]) == pytest.approx(25.0)

    def test_zero_total_share(self):
        data = distribution([("a", 0)])
        assert data.share(data.items[0]) == 0.0

    def test_ranks_assigned(self):
        data = ranked_list([ListItem(name="a", value=1), ListItem(name="b", value=2, rank=7)])
        assert [i.rank for i in data.items] == [1, 7]

    def test_payload_must_match_type(self):
        with pytest.raises(ValidationError):
            QueryResponse(
                query="q",
                type=VisualizationType.LIST,
                title="t",
                data=comparison([("a", 1)]),
            )


class TestChangeTrend:
    @pytest.mark.parametrize(
        "previous, current, direction, value",
        [
            (100, 150, "up", 50),
            (100, 80, "down", 20),
            (100, 100, "neutral", 0),
            (0, 50, "neutral", 0),
        ],
    )
    def test_change(self, previous, current, direction, value):
        result = change_trend(previous, current)
        assert result.direction == direction
        assert result.value == value


class TestPickMetric:
    OPTIONS = [("active teacher", "active_teachers"), ("teacher", "teachers"), ("session", "sessions")]

    def test_first_keyword_wins(self):
        assert pick_metric("Top schools by active teachers", self.OPTIONS) == "active_teachers"

    def test_default(self):
        assert pick_metric("Top schools", self.OPTIONS, default="sessions") == "sessions"
        assert pick_metric("Top schools", self.OPTIONS) is None
