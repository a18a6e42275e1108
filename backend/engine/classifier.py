"""
Metria Engine - Column Classifier
Sample-based numeric / date / categorical detection and label column selection.

Classification looks at a bounded sample of leading rows and is never re-checked
against the full column. Sparse or sorted data can be misclassified; tune
ClassifierConfig instead of special-casing values.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from dateutil import parser as dateparser

from .models import ColumnKind, ColumnProfile
from .sanitizer import EMPTY, Cell, sanitize_cell

LABEL_HEADER_PATTERN = re.compile(r"area|name|state|label", re.IGNORECASE)
NON_NUMERIC_CHARS = re.compile(r"[^0-9.-]")
HAS_DIGIT = re.compile(r"\d")

# Above this a stripped value reads as an ID, not a date.
MAX_DATE_LIKE_NUMBER = 10_000_000
MIN_DATE_YEAR = 1900
# Fills missing date parts so partial dates parse the same on any day of the month.
DATE_DEFAULT = datetime(2000, 1, 1)


@dataclass(frozen=True)
class ClassifierConfig:
    numeric_sample_size: int = 5
    category_sample_size: int = 9
    # Share of sampled cells that must be number, blank or date-like.
    numeric_ratio: float = 1.0
    # None means "up to the sample length".
    max_category_cardinality: Optional[int] = None


DEFAULT_CONFIG = ClassifierConfig()


def _number_text(number: float) -> str:
    return str(int(number)) if number.is_integer() else repr(number)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date-like text cell, or None. Numbers and blanks are never dates."""
    cell = sanitize_cell(value)
    if not cell.is_text:
        return None
    text = cell.value
    if not HAS_DIGIT.search(text):
        return None

    numeric_text = NON_NUMERIC_CHARS.sub("", text)
    try:
        number = float(numeric_text)
    except ValueError:
        number = None
    if number is not None and math.isfinite(number):
        # Bare years and large integers (IDs, phone numbers) are not dates.
        if number > MAX_DATE_LIKE_NUMBER:
            return None
        if len(_number_text(abs(number))) == 4:
            return None

    try:
        parsed = dateparser.parse(text, default=DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return parsed if parsed.year > MIN_DATE_YEAR else None


def is_date_like(value: Any) -> bool:
    return parse_date(value) is not None


def _cell_at(row: Sequence[Any], index: int) -> Cell:
    if index >= len(row):
        return EMPTY
    return sanitize_cell(row[index])


def column_sample(rows: Sequence[Sequence[Any]], index: int, size: int) -> list[Cell]:
    return [_cell_at(row, index) for row in rows[:size]]


def _all_date_like(sample: list[Cell]) -> bool:
    dates = [c for c in sample if not c.is_empty]
    return bool(dates) and all(is_date_like(c) for c in dates)


def detect_numeric_columns(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> list[int]:
    """Indexes of columns whose leading sample is numeric (numbers, blanks and dates tolerated)."""
    if not header or not rows:
        return []

    numeric = []
    for index in range(len(header)):
        sample = column_sample(rows, index, config.numeric_sample_size)
        if not any(c.is_number for c in sample):
            continue
        conforming = sum(1 for c in sample if c.is_number or c.is_empty or is_date_like(c))
        if conforming >= config.numeric_ratio * len(sample):
            numeric.append(index)
    return numeric


def _full_column(rows: Sequence[Sequence[Any]], index: int) -> list:
    return [_cell_at(row, index).raw for row in rows]


def _profile(header, rows, index, numeric_indexes, is_date) -> ColumnProfile:
    if is_date:
        kind = ColumnKind.DATE
    elif index in numeric_indexes:
        kind = ColumnKind.NUMERIC
    else:
        kind = ColumnKind.CATEGORICAL
    return ColumnProfile(
        name=str(header[index]),
        index=index,
        kind=kind,
        is_date=is_date,
        values=_full_column(rows, index),
    )


def detect_category_column(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    numeric_indexes: Sequence[int],
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> Optional[ColumnProfile]:
    """
    Pick the label column used for chart axes and grouping.
    Order: label-like header, first all-date column, first low-cardinality text column, column 0.
    """
    if not header or not rows:
        return None

    numeric_set = set(numeric_indexes)
    size = config.category_sample_size
    samples = {i: column_sample(rows, i, size) for i in range(len(header))}

    for index, name in enumerate(header):
        if LABEL_HEADER_PATTERN.search(str(name)):
            is_date = index not in numeric_set and _all_date_like(samples[index])
            return _profile(header, rows, index, numeric_set, is_date)

    candidates = [i for i in range(len(header)) if i not in numeric_set]

    for index in candidates:
        if _all_date_like(samples[index]):
            return _profile(header, rows, index, numeric_set, True)

    for index in candidates:
        sample = samples[index]
        limit = config.max_category_cardinality or len(sample)
        unique = {c.value for c in sample if c.is_text}
        if 1 < len(unique) <= limit:
            return _profile(header, rows, index, numeric_set, False)

    return _profile(header, rows, 0, numeric_set, False)


def classify_columns(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    numeric_indexes: Optional[Sequence[int]] = None,
    config: ClassifierConfig = DEFAULT_CONFIG,
) -> dict[str, str]:
    """ColumnKind for every column, keyed by header."""
    if numeric_indexes is None:
        numeric_indexes = detect_numeric_columns(header, rows, config)
    numeric_set = set(numeric_indexes)

    kinds = {}
    for index, name in enumerate(header):
        if index in numeric_set:
            kinds[str(name)] = ColumnKind.NUMERIC
        elif _all_date_like(column_sample(rows, index, config.category_sample_size)):
            kinds[str(name)] = ColumnKind.DATE
        else:
            kinds[str(name)] = ColumnKind.CATEGORICAL
    return kinds
