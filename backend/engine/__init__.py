"""
Metria Engine
Dataset ingestion and statistical profiling
"""

from .models import (
    CellValue,
    WireModel,
    ColumnKind,
    Stats,
    ColumnProfile,
    AIInsight,
    Dataset,
    ColumnInsight,
    TrendInsight,
    CurrencyContext,
    InsightBundle,
)

from .parser import (
    RawTable,
    parse_csv_text,
    parse_row_array,
    parse_table,
    align_row,
    unique_headers,
)

from .sanitizer import (
    CellKind,
    Cell,
    sanitize_cell,
    sanitize_value,
    sanitize_row,
)

from .classifier import (
    ClassifierConfig,
    is_date_like,
    detect_numeric_columns,
    detect_category_column,
    classify_columns,
)

from .profiler import (
    numeric_values,
    compute_column_stats,
    compute_metrics,
    profile_columns,
    value_frequencies,
)

from .health import (
    score_rows,
    calculate_health_score,
)

from .trends import (
    growth_percent,
    volatility,
    revenue_by_segment,
    top_client_share,
    calculate_totals,
    flatten_records,
    build_intelligence_payload,
)

from .ai_context import (
    detect_currency,
    prepare_ai_context,
    build_insight_request,
)

from .pipeline import (
    color_for,
    build_dataset,
    ingest_csv,
    ingest_rows,
    ingest_many,
)

__all__ = [
    # Records
    'CellValue',
    'WireModel',
    'ColumnKind',
    'Stats',
    'ColumnProfile',
    'AIInsight',
    'Dataset',
    'ColumnInsight',
    'TrendInsight',
    'CurrencyContext',
    'InsightBundle',
    # Parser
    'RawTable',
    'parse_csv_text',
    'parse_row_array',
    'parse_table',
    'align_row',
    'unique_headers',
    # Sanitizer
    'CellKind',
    'Cell',
    'sanitize_cell',
    'sanitize_value',
    'sanitize_row',
    # Classifier
    'ClassifierConfig',
    'is_date_like',
    'detect_numeric_columns',
    'detect_category_column',
    'classify_columns',
    # Profiler
    'numeric_values',
    'compute_column_stats',
    'compute_metrics',
    'profile_columns',
    'value_frequencies',
    # Health
    'score_rows',
    'calculate_health_score',
    # Trends
    'growth_percent',
    'volatility',
    'revenue_by_segment',
    'top_client_share',
    'calculate_totals',
    'flatten_records',
    'build_intelligence_payload',
    # AI Context
    'detect_currency',
    'prepare_ai_context',
    'build_insight_request',
    # Pipeline
    'color_for',
    'build_dataset',
    'ingest_csv',
    'ingest_rows',
    'ingest_many',
]
