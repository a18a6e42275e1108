import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from engine.pipeline import ingest_csv
from engine.trends import (
    build_intelligence_payload,
    calculate_totals,
    flatten_records,
    growth_percent,
    normalize_field_name,
    revenue_by_segment,
    summarize_records,
    top_client_share,
    volatility,
)

LEDGER_CSV = """Date,Client,Segment,Revenue,Expense
2024-03-01,A,SMB,30,10
2024-01-01,A,SMB,10,5
2024-02-01,B,Enterprise,20,5
2024-04-01,B,Enterprise,40,20
"""


class GrowthAndVolatilityTests(unittest.TestCase):
    def test_growth_between_halves(self):
        self.assertEqual(growth_percent([10, 10, 20, 20]), 100.0)

    def test_odd_length_puts_extra_value_in_second_half(self):
        self.assertEqual(growth_percent([10, 20, 30]), 150.0)

    def test_degenerate_series_return_zero(self):
        self.assertEqual(growth_percent([5]), 0.0)
        self.assertEqual(growth_percent([]), 0.0)
        self.assertEqual(growth_percent([0, 0, 5, 5]), 0.0)

    def test_volatility_is_population_std_dev(self):
        self.assertAlmostEqual(volatility([2, 4, 4, 4, 5, 5, 7, 9]), 2.0)
        self.assertEqual(volatility([3]), 0.0)


class AggregationTests(unittest.TestCase):
    def test_revenue_by_segment_with_uncategorized_bucket(self):
        rows = [
            {"segment": "SMB", "revenue": 10},
            {"segment": "Enterprise", "revenue": "1,000"},
            {"revenue": 5},
            {"segment": "SMB", "revenue": 15},
        ]
        self.assertEqual(
            revenue_by_segment(rows),
            {"SMB": 25.0, "Enterprise": 1000.0, "Uncategorized": 5.0},
        )

    def test_top_client_share(self):
        rows = [{"client": "A", "revenue": 70}, {"client": "B", "revenue": 30}]
        self.assertAlmostEqual(top_client_share(rows), 0.7)

    def test_top_client_share_without_revenue(self):
        self.assertEqual(top_client_share([{"client": "A", "revenue": 0}]), 0.0)
        self.assertEqual(top_client_share([]), 0.0)

    def test_totals_and_margin(self):
        totals = calculate_totals([
            {"revenue": 60, "expense": 30},
            {"revenue": 40, "expense": 10},
        ])
        self.assertEqual(totals["total_revenue"], 100)
        self.assertEqual(totals["total_expense"], 40)
        self.assertEqual(totals["total_profit"], 60)
        self.assertAlmostEqual(totals["avg_profit_margin"], 0.6)

    def test_margin_is_zero_without_revenue(self):
        self.assertEqual(calculate_totals([])["avg_profit_margin"], 0.0)


class IntelligencePayloadTests(unittest.TestCase):
    def test_field_names_are_snake_case(self):
        self.assertEqual(normalize_field_name(" Client Name "), "client_name")
        self.assertEqual(normalize_field_name("Revenue ($)"), "revenue")

    def test_flatten_records_across_datasets(self):
        first = ingest_csv("Client,Revenue\nA,10", "q1")
        second = ingest_csv("Client,Revenue\nB,20", "q2")
        self.assertEqual(
            flatten_records([first, second]),
            [{"client": "A", "revenue": 10.0}, {"client": "B", "revenue": 20.0}],
        )

    def test_payload_orders_dated_rows_before_splitting(self):
        payload = build_intelligence_payload([ingest_csv(LEDGER_CSV, "ledger")])
        self.assertEqual(payload["totals"]["total_revenue"], 100)
        self.assertEqual(payload["totals"]["total_expense"], 40)
        self.assertEqual(payload["distribution"]["revenue_by_segment"], {"SMB": 40.0, "Enterprise": 60.0})
        # Date order gives 10, 20, 30, 40: halves average 15 and 35.
        self.assertAlmostEqual(payload["trends"]["growth_rate"], (35 / 15 - 1) * 100)
        self.assertAlmostEqual(payload["trends"]["volatility_index"], 125 ** 0.5)
        self.assertAlmostEqual(payload["concentration"]["top_client_share"], 0.6)

    def test_single_row_has_no_trend(self):
        payload = summarize_records([{"revenue": 10}])
        self.assertIsNone(payload["trends"]["growth_rate"])
        self.assertIsNone(payload["trends"]["volatility_index"])


if __name__ == "__main__":
    unittest.main()
