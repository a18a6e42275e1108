"""
Metria Engine - Health Scorer
0-100 data quality score from blanks and outliers in the primary numeric column
"""

import math
from typing import Any, Sequence

from .models import Dataset
from .profiler import numeric_values
from .sanitizer import sanitize_cell

MISSING_PENALTY = 1.0
OUTLIER_PENALTY = 0.5
# A value above this multiple of the column average counts as an outlier.
OUTLIER_FACTOR = 5


def score_rows(rows: Sequence[Sequence[Any]], numeric_indexes: Sequence[int]) -> int:
    if not rows or not numeric_indexes:
        return 0

    index = numeric_indexes[0]
    values = numeric_values(rows, index)
    avg = sum(values) / len(values) if values else 0.0

    issues = 0.0
    for row in rows:
        cell = sanitize_cell(row[index]) if index < len(row) else sanitize_cell("")
        if cell.is_empty:
            issues += MISSING_PENALTY
        elif cell.is_number and avg != 0 and cell.value > avg * OUTLIER_FACTOR:
            issues += OUTLIER_PENALTY

    score = max(0.0, 100 - issues / len(rows) * 100)
    return int(math.floor(score + 0.5))


def calculate_health_score(dataset: Dataset) -> int:
    return score_rows(dataset.body, dataset.numeric_cols)
