"""
Response Builder

Constructors for the five payload variants plus the small derived
computations handlers share (default colors, rank assignment,
distribution totals, month-over-month trend, keyword-driven metric
selection).
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from backend.app.engine.summary import round_half_up
from backend.app.schema.query_schema import (
    ChartItem,
    ComparisonData,
    DistributionData,
    ListData,
    ListItem,
    ResponseDraft,
    SingleStatData,
    StatTrend,
    TrendData,
    TrendPoint,
)

Number = Union[int, float]

# Assigned by item index, cycling, when an item has no explicit color.
PALETTE: tuple[str, ...] = (
    "#E91E8C",
    "#10B981",
    "#F59E0B",
    "#3B82F6",
    "#8B5CF6",
    "#EC4899",
)

# (name, value) or (name, value, color)
ChartEntry = Union[tuple[str, Number], tuple[str, Number, Optional[str]]]


def color_for(index: int) -> str:
    return PALETTE[index % len(PALETTE)]


def _chart_items(entries: Iterable[ChartEntry]) -> list[ChartItem]:
    items = []
    for index, entry in enumerate(entries):
        name, value = entry[0], entry[1]
        color = entry[2] if len(entry) > 2 else None
        items.append(ChartItem(name=name, value=value, color=color or color_for(index)))
    return items


def single_stat(
    value: Union[Number, str],
    label: str,
    suffix: Optional[str] = None,
    trend: Optional[StatTrend] = None,
) -> SingleStatData:
    return SingleStatData(value=value, label=label, suffix=suffix, trend=trend)


def comparison(
    entries: Iterable[ChartEntry],
    x_label: Optional[str] = None,
    y_label: Optional[str] = None,
) -> ComparisonData:
    return ComparisonData(items=_chart_items(entries), x_label=x_label, y_label=y_label)


def distribution(
    entries: Iterable[ChartEntry],
    total: Optional[Number] = None,
) -> DistributionData:
    """Distribution payload; *total* defaults to the sum of the values."""
    items = _chart_items(entries)
    if total is None:
        total = sum(item.value for item in items)
    return DistributionData(items=items, total=total)


def trend(
    points: Iterable[tuple[str, Number]],
    x_label: Optional[str] = None,
    y_label: Optional[str] = None,
) -> TrendData:
    return TrendData(
        points=[TrendPoint(label=label, value=value) for label, value in points],
        x_label=x_label,
        y_label=y_label,
    )


def ranked_list(
    items: Sequence[ListItem],
    value_label: Optional[str] = None,
) -> ListData:
    """List payload; items without a rank get their 1-based position."""
    ranked = [
        item if item.rank is not None else item.model_copy(update={"rank": position})
        for position, item in enumerate(items, start=1)
    ]
    return ListData(items=ranked, value_label=value_label)


def change_trend(previous: Number, current: Number) -> StatTrend:
    """Percentage change from *previous* to *current*."""
    if not previous:
        return StatTrend(direction="neutral", value=0)
    change = round_half_up(100.0 * (current - previous) / previous)
    if change > 0:
        return StatTrend(direction="up", value=change)
    if change < 0:
        return StatTrend(direction="down", value=abs(change))
    return StatTrend(direction="neutral", value=0)


def pick_metric(
    query: str,
    options: Sequence[tuple[str, str]],
    default: Optional[str] = None,
) -> Optional[str]:
    """Return the metric for the first keyword found in *query*.

    *options* is an ordered list of ``(keyword, metric)`` pairs, so
    longer keywords ("active teacher") must precede shorter ones
    ("teacher").
    """
    text = query.lower()
    for keyword, metric in options:
        if keyword in text:
            return metric
    return default


def draft(title: str, data, subtitle: Optional[str] = None) -> ResponseDraft:
    return ResponseDraft(title=title, subtitle=subtitle, data=data)
