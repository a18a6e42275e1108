"""
Metria Backend - Pydantic Models
Request/response schemas for the HTTP layer
"""

from typing import Any, Optional
from pydantic import BaseModel, Field

from engine import AIInsight, Dataset, InsightBundle, WireModel


class RowImportRequest(BaseModel):
    """Rows fetched from a spreadsheet provider: {values, title}"""
    values: list[Any]
    title: Optional[str] = None
    name: Optional[str] = None


class DatasetSelection(BaseModel):
    dataset_ids: list[str] = Field(min_length=1)


class AnalyzeRequest(DatasetSelection):
    mode: str = "executive"


class DatasetSummary(WireModel):
    id: str
    name: str
    color: str
    rows: int
    cols: int
    health_score: int
    has_insight: bool


class AnalyzeResponse(WireModel):
    dataset_id: str
    insight: AIInsight
    context: InsightBundle


class IntelligenceResponse(BaseModel):
    totals: dict[str, float]
    distribution: dict[str, dict[str, float]]
    trends: dict[str, Optional[float]]
    concentration: dict[str, float]


def summarize(dataset: Dataset) -> DatasetSummary:
    return DatasetSummary(
        id=dataset.id,
        name=dataset.name,
        color=dataset.color,
        rows=dataset.rows,
        cols=dataset.cols,
        health_score=dataset.health_score,
        has_insight=dataset.ai_storage is not None,
    )
