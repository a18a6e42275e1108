"""
Metria Engine - Statistics Profiler
Descriptive statistics for numeric columns
"""

import math
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence

import pandas as pd

from .classifier import DEFAULT_CONFIG, ClassifierConfig, classify_columns
from .models import ColumnKind, ColumnProfile, Stats
from .sanitizer import sanitize_cell

# Stats.std_dev is always the sample standard deviation (n - 1 denominator).
STD_DEV_DDOF = 1


def numeric_values(rows: Sequence[Sequence[Any]], index: int) -> list[float]:
    """Numbers in one column; blanks and text are skipped, not counted as 0."""
    values = []
    for row in rows:
        if index >= len(row):
            continue
        cell = sanitize_cell(row[index])
        if cell.is_number:
            values.append(cell.value)
    return values


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def compute_column_stats(values: Sequence[float]) -> Stats:
    """Column statistics; any total that overflows to inf/nan falls back to 0."""
    series = pd.Series(values, dtype="float64")
    count = int(series.count())
    if count == 0:
        return Stats()

    total = float(series.sum())
    avg = total / count
    if not math.isfinite(avg):
        # Pre-divided values stay finite when the raw sum overflows.
        avg = float((series / count).sum())
    std_dev = float(series.std(ddof=STD_DEV_DDOF)) if count > 1 else 0.0
    return Stats(
        sum=_finite(total),
        avg=_finite(avg),
        min=float(series.min()),
        max=float(series.max()),
        count=count,
        std_dev=_finite(std_dev),
    )


def compute_metrics(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    numeric_indexes: Sequence[int],
) -> dict[str, Stats]:
    metrics = {}
    for index in numeric_indexes:
        name = str(header[index]) if index < len(header) and header[index] else f"col_{index}"
        metrics[name] = compute_column_stats(numeric_values(rows, index))
    return metrics


def _freq_key(cell) -> str:
    if cell.is_empty:
        return "N/A"
    if cell.is_number:
        return str(int(cell.value)) if cell.value.is_integer() else str(cell.value)
    return cell.value


def value_frequencies(rows: Sequence[Sequence[Any]], index: int) -> dict[str, int]:
    """Occurrences of each value in a column, in first-seen order"""
    cells = (sanitize_cell(row[index]) if index < len(row) else sanitize_cell("") for row in rows)
    return dict(Counter(_freq_key(cell) for cell in cells))


def _profile_column(header, rows, index, kind, with_values=True) -> ColumnProfile:
    numeric = kind == ColumnKind.NUMERIC
    values = [sanitize_cell(row[index]).raw if index < len(row) else "" for row in rows] if with_values else []
    return ColumnProfile(
        name=str(header[index]),
        index=index,
        kind=kind,
        is_date=kind == ColumnKind.DATE,
        values=values,
        stats=compute_column_stats(numeric_values(rows, index)) if numeric else None,
        freq=None if numeric else value_frequencies(rows, index),
    )


def profile_columns(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    numeric_indexes: Optional[Sequence[int]] = None,
    config: ClassifierConfig = DEFAULT_CONFIG,
    max_workers: Optional[int] = None,
    with_values: bool = True,
) -> list[ColumnProfile]:
    """
    Full ColumnProfile for every column. Columns are independent, so with
    max_workers > 1 they are profiled on a thread pool. with_values=False
    leaves out the cell values when the caller already holds the table.
    """
    kinds = classify_columns(header, rows, numeric_indexes, config)
    jobs = [(i, kinds[str(name)], with_values) for i, name in enumerate(header)]

    if not max_workers or max_workers <= 1:
        return [_profile_column(header, rows, *job) for job in jobs]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda job: _profile_column(header, rows, *job), jobs))
