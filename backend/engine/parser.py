"""
Metria Engine - Row Parser
Turns CSV text or spreadsheet row arrays into a header plus string rows
"""

import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

LINE_BREAK_PATTERN = re.compile(r"\r?\n")
# Split on commas followed by an even number of double quotes, i.e. commas outside quoted fields.
CSV_SPLIT_PATTERN = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')


@dataclass
class RawTable:
    header: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)

    @property
    def width(self) -> int:
        return len(self.header)


def _unquote(field_text: str) -> str:
    text = field_text.strip()
    if text.startswith('"'):
        text = text[1:]
    if text.endswith('"'):
        text = text[:-1]
    return text.replace('""', '"')


def split_csv_line(line: str) -> list[str]:
    return [_unquote(part) for part in CSV_SPLIT_PATTERN.split(line)]


def parse_csv_text(text: Union[str, bytes]) -> RawTable:
    """Parse comma-separated text. Blank lines are skipped; the first line is the header."""
    if isinstance(text, bytes):
        text = text.decode("utf-8-sig")
    text = text.lstrip("\ufeff")

    lines = [line for line in LINE_BREAK_PATTERN.split(text) if line.strip()]
    if not lines:
        return RawTable()

    parsed = [split_csv_line(line) for line in lines]
    return RawTable(header=parsed[0], rows=parsed[1:])


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def parse_row_array(values: Sequence[Any]) -> RawTable:
    """
    Normalize spreadsheet rows. Accepts array-of-arrays (header row first) or
    array-of-objects (keys become the header, in first-seen order).
    """
    if not values:
        return RawTable()

    first = values[0]
    if isinstance(first, Mapping):
        header: list[str] = []
        seen = set()
        for row in values:
            if not isinstance(row, Mapping):
                raise ValueError("Mixed row shapes: expected every row to be an object.")
            for key in row:
                if key not in seen:
                    seen.add(key)
                    header.append(key)
        rows = [[_cell_text(row.get(key)) for key in header] for row in values]
        return RawTable(header=[str(h) for h in header], rows=rows)

    if isinstance(first, Sequence) and not isinstance(first, (str, bytes)):
        rows = []
        for row in values[1:]:
            if isinstance(row, (str, bytes)) or not isinstance(row, Sequence):
                raise ValueError("Mixed row shapes: expected every row to be an array.")
            rows.append([_cell_text(v) for v in row])
        return RawTable(header=[_cell_text(h) for h in first], rows=rows)

    raise ValueError("Unsupported row format: expected an array of arrays or an array of objects.")


def parse_table(source: Any) -> RawTable:
    """Dispatch on input type: text/bytes go through the CSV parser, sequences through the row normalizer."""
    if isinstance(source, RawTable):
        return source
    if isinstance(source, (str, bytes)):
        return parse_csv_text(source)
    if isinstance(source, Sequence):
        return parse_row_array(source)
    raise ValueError(f"Unsupported table source: {type(source).__name__}")


def align_row(row: Sequence[Any], width: int) -> list[Any]:
    """Pad short rows with blanks and drop cells beyond the header width."""
    if len(row) >= width:
        return list(row[:width])
    return list(row) + [""] * (width - len(row))


def unique_headers(header: Sequence[str]) -> list[str]:
    """Name blank headers col_<i> and suffix duplicates with _2, _3, ...

    A suffixed name never reuses a header that appears elsewhere in the row.
    """
    names = [str(raw).strip() or f"col_{i}" for i, raw in enumerate(header)]
    taken = set(names)
    counters: dict[str, int] = {}
    used: set[str] = set()
    result = []
    for name in names:
        if name not in used:
            used.add(name)
            result.append(name)
            continue
        n = counters.get(name, 1)
        candidate = name
        while candidate in used or candidate in taken:
            n += 1
            candidate = f"{name}_{n}"
        counters[name] = n
        used.add(candidate)
        result.append(candidate)
    return result
