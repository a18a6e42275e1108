"""
Metria Engine - AI Context Builder
Compact, currency-aware summary bundle for the external insight service
"""

import json
import re
from typing import Any, Sequence

from .models import ColumnInsight, CurrencyContext, Dataset, InsightBundle, TrendInsight
from .profiler import numeric_values
from .trends import growth_percent, volatility

# Detection order; the first match is the primary symbol.
CURRENCY_SYMBOLS = ["$", "R", "£", "€", "¥", "₹", "₱", "₩", "A$", "C$"]
CURRENCY_PATTERNS = {
    # A$ and C$ are their own currencies, not dollars.
    "$": re.compile(r"(?<![AC])\$"),
    # Rand needs an amount shape: "R 45", "R1,200" or "R12.50". Bare codes
    # like "R1" or "R22" are region or row labels, and "R1200" is left out with them.
    "R": re.compile(r"(?<![A-Za-z0-9])R(?: \d|\d{1,3}(?:,\d{3})+(?![\d,])|\d+\.\d{2}(?!\d))"),
}
# Columns with fewer values than this get no growth trend.
MIN_TREND_VALUES = 5

INSIGHT_SYSTEM_PROMPT = """You are a senior business analyst. You receive a JSON statistical summary of one or more datasets.

Return ONLY a JSON object with these string fields:
1. summary: Executive summary in 2-3 sentences
2. root_cause: The primary driver behind the most important movement
3. risk: The main risk visible in the numbers (volatility, concentration, decline)
4. opportunity: The strongest growth opportunity
5. action: One concrete tactical priority

Rules:
- Only cite numbers present in the context.
- growthPercent compares the second half of a column against the first half.
- volatility is the population standard deviation of the column."""


def _pattern(symbol: str) -> re.Pattern:
    return CURRENCY_PATTERNS.get(symbol) or re.compile(re.escape(symbol))


def detect_currency(datasets: Sequence[Dataset]) -> CurrencyContext:
    """Scan the serialized data for known currency symbols."""
    blob = json.dumps([ds.data for ds in datasets], ensure_ascii=False)
    detected = [s for s in CURRENCY_SYMBOLS if _pattern(s).search(blob)]
    return CurrencyContext(
        symbol=detected[0] if detected else None,
        is_multi=len(detected) > 1,
        all_detected=detected,
    )


def currency_instructions(currency: CurrencyContext) -> str:
    if currency.is_multi:
        symbols = ", ".join(currency.all_detected)
        return (
            f"The data mixes currencies ({symbols}). Keep each value's original symbol; "
            "do not convert or normalize to a single currency, and never default to USD."
        )
    if currency.symbol:
        return f"All monetary values are in {currency.symbol}. Use {currency.symbol}, never default to USD."
    return "No currency symbol was detected. Do not assume USD; report monetary values without a symbol."


def prepare_ai_context(datasets: Sequence[Dataset]) -> InsightBundle:
    if not datasets:
        return InsightBundle()

    stats: list[ColumnInsight] = []
    trends: list[TrendInsight] = []
    for ds in datasets:
        header = ds.columns
        for index in ds.numeric_cols:
            name = header[index]
            metrics = ds.metrics.get(name)
            if metrics is None or not metrics.count:
                continue
            values = numeric_values(ds.body, index)
            stats.append(ColumnInsight(
                header=name,
                dataset=ds.name,
                avg=round(metrics.avg, 2),
                max=metrics.max,
                min=metrics.min,
                volatility=round(volatility(values), 2),
            ))
            if len(values) >= MIN_TREND_VALUES:
                trends.append(TrendInsight(
                    header=name,
                    dataset=ds.name,
                    growth_percent=round(growth_percent(values), 1),
                ))

    first = datasets[0]
    currency = detect_currency(datasets)
    return InsightBundle(
        stats=stats,
        trends=trends,
        row_count=first.rows,
        column_names=first.columns,
        currency_symbol=currency.symbol,
        currency=currency,
    )


def build_insight_request(datasets: Sequence[Dataset], mode: str = "executive") -> dict[str, Any]:
    """Request envelope for the insight service: {context, mode, system_instructions}."""
    bundle = prepare_ai_context(datasets)
    context = {
        "bundle": bundle.to_wire(),
        "datasets": [
            {
                "id": ds.id,
                "name": ds.name,
                "metrics": {k: v.to_wire() for k, v in ds.metrics.items()},
            }
            for ds in datasets
        ],
    }
    return {
        "context": context,
        "mode": mode,
        "system_instructions": f"{INSIGHT_SYSTEM_PROMPT}\n\nCurrency: {currency_instructions(bundle.currency)}",
    }
