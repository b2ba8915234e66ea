"""
Export

Degraded renderings of saved responses for media without native charts:

* :func:`format_data`: text for one payload, switching on its type tag.
  Unrecognized tags are rendered as a single statistic.
* :func:`build_report`: a plain-text report over several responses.
* :func:`responses_to_frame`: a flat pandas table, one row per
  rendered value.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import pandas as pd

from backend.app.schema.query_schema import DistributionData, QueryResponse

logger = logging.getLogger(__name__)

REPORT_TITLE = "Analytics Report"

_ARROWS = {"up": "↑", "down": "↓"}

FRAME_COLUMNS = [
    "response_id",
    "query",
    "title",
    "type",
    "position",
    "name",
    "value",
    "detail",
]

ResponseLike = Union[QueryResponse, Mapping[str, Any]]


def _as_dict(response: ResponseLike) -> dict[str, Any]:
    if isinstance(response, QueryResponse):
        return response.model_dump(mode="json")
    return dict(response)


def _number(value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    return f"{value:,}"


# Per-variant text

def _single_stat_text(data: Mapping[str, Any]) -> str:
    text = f"{data.get('label', 'Value')}: {data.get('value', '')}{data.get('suffix') or ''}"
    stat_trend = data.get("trend")
    if stat_trend:
        arrow = _ARROWS.get(stat_trend.get("direction"), "→")
        text += f"\nTrend: {arrow} {stat_trend.get('value', 0)}%"
    return text


def _comparison_text(data: Mapping[str, Any]) -> str:
    lines = ["Comparison Data:", ""]
    for index, item in enumerate(data.get("items", []), start=1):
        lines.append(f"{index}. {item['name']}: {_number(item['value'])}")
    return "\n".join(lines)


def _distribution_text(data: Mapping[str, Any]) -> str:
    distribution = DistributionData.model_validate(data)
    lines = ["Distribution:", ""]
    for item in distribution.items:
        share = distribution.share(item)
        lines.append(f"• {item.name}: {_number(item.value)} ({share:.1f}%)")
    return "\n".join(lines)


def _trend_text(data: Mapping[str, Any]) -> str:
    lines = ["Trend Over Time:", ""]
    for point in data.get("points", []):
        lines.append(f"{point['label']}: {_number(point['value'])}")
    return "\n".join(lines)


def _list_text(data: Mapping[str, Any]) -> str:
    value_label = data.get("value_label")
    lines = [f"{value_label}:" if value_label else "Results:", ""]
    for index, item in enumerate(data.get("items", []), start=1):
        line = f"{item.get('rank') or index}. {item['name']}: {_number(item['value'])}"
        if item.get("subtext"):
            line += f" ({item['subtext']})"
        lines.append(line)
    return "\n".join(lines)


_FORMATTERS = {
    "single_stat": _single_stat_text,
    "comparison": _comparison_text,
    "distribution": _distribution_text,
    "trend": _trend_text,
    "list": _list_text,
}


def format_data(response: ResponseLike) -> str:
    """Text rendering of a response's payload."""
    raw = _as_dict(response)
    kind = raw.get("type")
    formatter = _FORMATTERS.get(kind)
    if formatter is None:
        logger.warning("Unknown visualization type '%s'; rendering as single stat.", kind)
        formatter = _single_stat_text
    return formatter(raw.get("data") or {})


def format_response(response: ResponseLike) -> str:
    """Title, optional subtitle, payload text and the originating query."""
    raw = _as_dict(response)
    parts = [raw.get("title", "")]
    if raw.get("subtitle"):
        parts.append(raw["subtitle"])
    parts.extend(["", format_data(raw), "", f"Query: {raw.get('query', '')}"])
    return "\n".join(parts)


def build_report(
    responses: Sequence[ResponseLike],
    title: str = REPORT_TITLE,
    generated_at: Optional[datetime] = None,
) -> str:
    """Plain-text report: a header page then one section per response."""
    generated_at = generated_at or datetime.now()
    count = len(responses)
    header = [
        title,
        f"Generated on {generated_at.strftime('%A, %B')} {generated_at.day}, {generated_at.year}",
        f"{count} visualization{'' if count == 1 else 's'} included",
    ]
    sections = ["\n".join(header)]
    for index, response in enumerate(responses, start=1):
        sections.append(f"{index}. {format_response(response)}")
    return ("\n\n" + "-" * 40 + "\n\n").join(sections) + "\n"


# Tabular form

def _rows(raw: Mapping[str, Any]) -> Iterable[dict[str, Any]]:
    data = raw.get("data") or {}
    base = {
        "response_id": raw.get("id"),
        "query": raw.get("query"),
        "title": raw.get("title"),
        "type": raw.get("type"),
    }
    kind = raw.get("type")
    if kind in ("comparison", "distribution"):
        for position, item in enumerate(data.get("items", []), start=1):
            yield {**base, "position": position, "name": item["name"],
                   "value": item["value"], "detail": item.get("color")}
    elif kind == "trend":
        for position, point in enumerate(data.get("points", []), start=1):
            yield {**base, "position": position, "name": point["label"],
                   "value": point["value"], "detail": None}
    elif kind == "list":
        for position, item in enumerate(data.get("items", []), start=1):
            yield {**base, "position": item.get("rank") or position, "name": item["name"],
                   "value": item["value"], "detail": item.get("subtext")}
    else:
        yield {**base, "position": 1, "name": data.get("label"),
               "value": data.get("value"), "detail": data.get("suffix")}


def responses_to_frame(responses: Iterable[ResponseLike]) -> pd.DataFrame:
    """Flatten responses into one table (columns: :data:`FRAME_COLUMNS`)."""
    rows = [row for response in responses for row in _rows(_as_dict(response))]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)
