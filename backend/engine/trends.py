"""
Metria Engine - Trend & Aggregation Analyzer
Growth, volatility, segment distribution and client concentration.

These reducers work on flattened rows keyed by field name (revenue, expense,
segment, client, date) and can span several datasets. They do not depend on
column classification.
"""

import math
import re
from typing import Any, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .classifier import parse_date
from .models import Dataset
from .sanitizer import sanitize_cell

UNCATEGORIZED = "Uncategorized"
UNKNOWN_CLIENT = "Unknown"


def normalize_field_name(header: str) -> str:
    """snake_case field key: 'Client Name' -> 'client_name'."""
    clean = re.sub(r"[^\w]+", "_", str(header).strip().lower())
    clean = re.sub(r"_+", "_", clean).strip("_")
    return clean or "column"


def growth_percent(values: Sequence[float]) -> float:
    """Percent change between the average of the second and first half (split by index)."""
    if len(values) < 2:
        return 0.0
    series = np.asarray(values, dtype="float64")
    mid = len(series) // 2
    first_avg = float(series[:mid].mean())
    second_avg = float(series[mid:].mean())
    if not math.isfinite(first_avg) or first_avg == 0:
        return 0.0
    growth = (second_avg / first_avg - 1) * 100
    return growth if math.isfinite(growth) else 0.0


def volatility(values: Sequence[float]) -> float:
    """Population standard deviation; 0 below two values."""
    if len(values) < 2:
        return 0.0
    result = float(np.std(np.asarray(values, dtype="float64")))
    return result if math.isfinite(result) else 0.0


def _amount(value: Any) -> float:
    cell = sanitize_cell(value)
    return cell.value if cell.is_number else 0.0


def _label(value: Any, fallback: str) -> str:
    cell = sanitize_cell(value)
    if cell.is_empty:
        return fallback
    if cell.is_number and cell.value.is_integer():
        return str(int(cell.value))
    return str(cell.value)


def _revenue_frame(rows: Sequence[Mapping[str, Any]], key: str, fallback: str) -> pd.DataFrame:
    return pd.DataFrame({
        key: [_label(r.get(key), fallback) for r in rows],
        "revenue": [_amount(r.get("revenue")) for r in rows],
    })


def revenue_by_segment(rows: Sequence[Mapping[str, Any]]) -> dict[str, float]:
    if not rows:
        return {}
    frame = _revenue_frame(rows, "segment", UNCATEGORIZED)
    grouped = frame.groupby("segment", sort=False)["revenue"].sum()
    return {str(k): float(v) for k, v in grouped.items()}


def top_client_share(rows: Sequence[Mapping[str, Any]]) -> float:
    """Share of total revenue held by the largest client."""
    if not rows:
        return 0.0
    frame = _revenue_frame(rows, "client", UNKNOWN_CLIENT)
    by_client = frame.groupby("client", sort=False)["revenue"].sum()
    total = float(by_client.sum())
    if total <= 0:
        return 0.0
    return max(float(by_client.max()), 0.0) / total


def calculate_totals(rows: Sequence[Mapping[str, Any]]) -> dict[str, float]:
    total_revenue = sum(_amount(r.get("revenue")) for r in rows)
    total_expense = sum(_amount(r.get("expense")) for r in rows)
    total_profit = total_revenue - total_expense
    return {
        "total_revenue": total_revenue,
        "total_expense": total_expense,
        "total_profit": total_profit,
        "avg_profit_margin": total_profit / total_revenue if total_revenue > 0 else 0.0,
    }


def _date_ordered(rows: Sequence[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    # Only reorder when every row is dated; otherwise index order is the time order.
    dates = [parse_date(r.get("date")) for r in rows]
    if not rows or any(d is None for d in dates):
        return list(rows)
    order = sorted(range(len(rows)), key=lambda i: dates[i].replace(tzinfo=None))
    return [rows[i] for i in order]


def flatten_records(datasets: Sequence[Dataset]) -> list[dict[str, Any]]:
    """Rows of every dataset, keyed by snake_case field name."""
    flattened = []
    for dataset in datasets:
        keys = [normalize_field_name(h) for h in dataset.columns]
        for row in dataset.body:
            flattened.append(dict(zip(keys, row)))
    return flattened


def summarize_records(rows: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    ordered = _date_ordered(rows)
    revenues = [_amount(r.get("revenue")) for r in ordered]
    growth: Optional[float] = growth_percent(revenues) if len(revenues) >= 2 else None
    vol: Optional[float] = volatility(revenues) if len(revenues) >= 2 else None
    return {
        "totals": calculate_totals(rows),
        "distribution": {
            "revenue_by_segment": revenue_by_segment(rows),
        },
        "trends": {
            "growth_rate": growth,
            "volatility_index": vol,
        },
        "concentration": {
            "top_client_share": top_client_share(rows),
        },
    }


def build_intelligence_payload(datasets: Sequence[Dataset]) -> dict[str, Any]:
    return summarize_records(flatten_records(datasets))
