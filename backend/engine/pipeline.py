"""
Metria Engine - Ingestion Pipeline
Parse -> sanitize -> classify -> profile -> score, producing a Dataset
"""

import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Optional, Sequence

from .classifier import DEFAULT_CONFIG, ClassifierConfig, detect_category_column, detect_numeric_columns
from .health import score_rows
from .models import Dataset
from .parser import RawTable, align_row, parse_csv_text, parse_row_array, parse_table, unique_headers
from .profiler import compute_metrics, profile_columns
from .sanitizer import sanitize_row

DATASET_COLORS = ["#bc13fe", "#22C55E", "#F97316", "#EAB308"]


def color_for(position: int) -> str:
    return DATASET_COLORS[position % len(DATASET_COLORS)]


def build_dataset(
    table: RawTable,
    name: str,
    dataset_id: Optional[str] = None,
    color: Optional[str] = None,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> Dataset:
    """Profile a parsed table. Rows are padded/truncated to the header width."""
    header = unique_headers(table.header)
    width = len(header)
    rows = [sanitize_row(align_row(row, width)) for row in table.rows] if width else []

    numeric = detect_numeric_columns(header, rows, config)
    category = detect_category_column(header, rows, numeric, config)

    data = [list(header)] + [[cell.raw for cell in row] for row in rows] if width else []
    return Dataset(
        id=dataset_id or uuid.uuid4().hex,
        name=name,
        color=color or color_for(0),
        rows=len(rows),
        cols=width,
        data=data,
        numeric_cols=numeric,
        metrics=compute_metrics(header, rows, numeric),
        category_col=category,
        analysis=profile_columns(header, rows, numeric, config, with_values=False),
        health_score=score_rows(rows, numeric),
    )


def ingest_csv(text: Any, name: str, **kwargs) -> Dataset:
    return build_dataset(parse_csv_text(text), name, **kwargs)


def ingest_rows(values: Sequence[Any], name: str, **kwargs) -> Dataset:
    return build_dataset(parse_row_array(values), name, **kwargs)


def ingest_many(
    sources: Sequence[tuple[str, Any]],
    max_workers: Optional[int] = None,
    first_position: int = 0,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> list[Dataset]:
    """
    Ingest several (name, source) pairs; each source is CSV text or row arrays.
    Colors continue from first_position. Datasets are independent, so
    max_workers > 1 runs them on a thread pool; output order matches input order.
    """
    def run(job: tuple[int, tuple[str, Any]]) -> Dataset:
        offset, (name, source) = job
        return build_dataset(
            parse_table(source),
            name,
            color=color_for(first_position + offset),
            config=config,
        )

    jobs = list(enumerate(sources))
    if not max_workers or max_workers <= 1:
        return [run(job) for job in jobs]

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(run, jobs))
