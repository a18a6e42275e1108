"""
Metria Engine - Records
Pydantic shapes shared by the pipeline, the service layer and persistence
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# A sanitized cell on the wire: a finite number, a non-empty string, or "" for empty.
CellValue = Union[float, str]


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ColumnKind:
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    DATE = "date"


class Stats(WireModel):
    sum: float = 0.0
    avg: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0
    std_dev: float = 0.0


class ColumnProfile(WireModel):
    name: str
    index: int
    kind: str
    is_date: bool = False
    values: list[CellValue] = Field(default_factory=list)
    stats: Optional[Stats] = None
    # Value counts for non-numeric columns; blanks count as "N/A".
    freq: Optional[dict[str, int]] = None


class AIInsight(WireModel):
    """Free-text insight returned by the external summarizer"""
    model_config = ConfigDict(alias_generator=None, extra="allow")

    summary: Optional[str] = None
    root_cause: Optional[str] = None
    risk: Optional[str] = None
    opportunity: Optional[str] = None
    action: Optional[str] = None


class Dataset(WireModel):
    id: str
    name: str
    color: str
    rows: int = 0
    cols: int = 0
    data: list[list[CellValue]] = Field(default_factory=list)
    numeric_cols: list[int] = Field(default_factory=list)
    metrics: dict[str, Stats] = Field(default_factory=dict)
    category_col: Optional[ColumnProfile] = None
    analysis: list[ColumnProfile] = Field(default_factory=list)
    health_score: int = 0
    ai_storage: Optional[AIInsight] = None

    @property
    def columns(self) -> list[str]:
        return [str(h) for h in self.data[0]] if self.data else []

    @property
    def body(self) -> list[list[CellValue]]:
        return self.data[1:]

    @property
    def records(self) -> list[dict[str, Any]]:
        """Data rows keyed by header"""
        header = self.columns
        return [dict(zip(header, row)) for row in self.body]


class ColumnInsight(WireModel):
    header: str
    dataset: Optional[str] = None
    avg: float
    max: float
    min: float
    volatility: float


class TrendInsight(WireModel):
    header: str
    dataset: Optional[str] = None
    growth_percent: float


class CurrencyContext(WireModel):
    symbol: Optional[str] = None
    is_multi: bool = False
    all_detected: list[str] = Field(default_factory=list)


class InsightBundle(WireModel):
    stats: list[ColumnInsight] = Field(default_factory=list)
    trends: list[TrendInsight] = Field(default_factory=list)
    row_count: int = 0
    column_names: list[str] = Field(default_factory=list)
    currency_symbol: Optional[str] = None
    currency: CurrencyContext = Field(default_factory=CurrencyContext)
