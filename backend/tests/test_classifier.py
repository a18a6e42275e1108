import sys
import unittest
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from engine.classifier import (
    ClassifierConfig,
    classify_columns,
    detect_category_column,
    detect_numeric_columns,
    is_date_like,
)
from engine.models import ColumnKind
from engine.sanitizer import sanitize_row


def rows_of(*rows):
    return [sanitize_row(r) for r in rows]


class DateDetectionTests(unittest.TestCase):
    def test_iso_and_written_dates(self):
        self.assertTrue(is_date_like("2024-01-15"))
        self.assertTrue(is_date_like("March 3, 2021"))

    def test_years_and_large_integers_are_not_dates(self):
        self.assertFalse(is_date_like("2024"))
        self.assertFalse(is_date_like(20240115))
        self.assertFalse(is_date_like("12345678"))

    def test_compact_slash_dates_hit_the_id_guard(self):
        # Stripped to 20240115, which is above the ID threshold.
        self.assertFalse(is_date_like("2024/01/15"))

    def test_text_without_digits_and_old_dates(self):
        self.assertFalse(is_date_like("Jan"))
        self.assertFalse(is_date_like(""))
        self.assertFalse(is_date_like("1850-05-01"))


class NumericDetectionTests(unittest.TestCase):
    def setUp(self):
        self.header = ["Region", "Sales"]

    def test_text_in_sample_blocks_numeric_by_default(self):
        rows = rows_of(
            ["East", "100"], ["West", "200"], ["North", "N/A"], ["South", "300"], ["East", "400"],
        )
        self.assertEqual(detect_numeric_columns(self.header, rows), [])

    def test_ratio_threshold_tolerates_one_failure_in_five(self):
        rows = rows_of(
            ["East", "100"], ["West", "200"], ["North", "N/A"], ["South", "300"], ["East", "400"],
        )
        config = ClassifierConfig(numeric_ratio=0.8)
        self.assertEqual(detect_numeric_columns(self.header, rows, config), [1])

    def test_blanks_are_tolerated(self):
        rows = rows_of(
            ["East", "100"], ["West", "200"], ["North", ""], ["South", "300"], ["East", "400"],
        )
        self.assertEqual(detect_numeric_columns(self.header, rows), [1])

    def test_only_the_leading_sample_is_inspected(self):
        rows = rows_of(
            ["a", "1"], ["b", "2"], ["c", "3"], ["d", "4"], ["e", "5"], ["f", "oops"],
        )
        self.assertEqual(detect_numeric_columns(self.header, rows), [1])

    def test_all_blank_column_is_not_numeric(self):
        rows = rows_of(["East", ""], ["West", ""])
        self.assertEqual(detect_numeric_columns(self.header, rows), [])

    def test_short_rows_read_as_blank(self):
        rows = rows_of(["East", "1"], ["West"])
        self.assertEqual(detect_numeric_columns(self.header, rows), [1])


class CategoryDetectionTests(unittest.TestCase):
    def test_label_like_header_wins(self):
        header = ["Code", "Store Name", "Sales"]
        rows = rows_of(["X", "Alpha", "1"], ["Y", "Beta", "2"])
        category = detect_category_column(header, rows, [2])
        self.assertEqual(category.index, 1)
        self.assertEqual(category.name, "Store Name")
        self.assertEqual(category.kind, ColumnKind.CATEGORICAL)
        self.assertEqual(category.values, ["Alpha", "Beta"])

    def test_date_column_is_preferred_over_text(self):
        header = ["Channel", "Date", "Revenue"]
        rows = rows_of(
            ["Web", "2024-01-01", "10"], ["Store", "2024-01-02", "20"], ["Web", "2024-01-03", "30"],
        )
        category = detect_category_column(header, rows, [2])
        self.assertEqual(category.index, 1)
        self.assertTrue(category.is_date)
        self.assertEqual(category.kind, ColumnKind.DATE)

    def test_first_low_cardinality_text_column(self):
        header = ["Product", "Region", "Sales"]
        rows = rows_of(["A", "East", "1"], ["B", "East", "2"], ["A", "West", "3"])
        category = detect_category_column(header, rows, [2])
        self.assertEqual(category.index, 0)
        self.assertFalse(category.is_date)

    def test_cardinality_cap(self):
        header = ["Product", "Region", "Sales"]
        rows = rows_of(["A", "East", "1"], ["B", "East", "2"], ["C", "West", "3"])
        category = detect_category_column(header, rows, [2], ClassifierConfig(max_category_cardinality=2))
        self.assertEqual(category.index, 1)

    def test_falls_back_to_first_column(self):
        header = ["Code", "Sales"]
        rows = rows_of(["X", "1"], ["X", "2"])
        category = detect_category_column(header, rows, [1])
        self.assertEqual(category.index, 0)
        self.assertEqual(category.kind, ColumnKind.CATEGORICAL)

    def test_all_numeric_falls_back_to_numeric_first_column(self):
        header = ["A", "B"]
        rows = rows_of(["1", "2"], ["3", "4"])
        category = detect_category_column(header, rows, [0, 1])
        self.assertEqual(category.index, 0)
        self.assertEqual(category.kind, ColumnKind.NUMERIC)
        self.assertEqual(category.values, [1.0, 3.0])

    def test_no_rows_gives_no_category(self):
        self.assertIsNone(detect_category_column(["A"], [], []))


class ClassifyColumnsTests(unittest.TestCase):
    def test_kind_for_every_column(self):
        header = ["Date", "Region", "Sales"]
        rows = rows_of(["2024-01-01", "East", "10"], ["2024-01-02", "West", "20"])
        self.assertEqual(
            classify_columns(header, rows),
            {"Date": ColumnKind.DATE, "Region": ColumnKind.CATEGORICAL, "Sales": ColumnKind.NUMERIC},
        )


if __name__ == "__main__":
    unittest.main()
