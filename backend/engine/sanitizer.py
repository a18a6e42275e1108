"""
Metria Engine - Cell Sanitizer
Coerces a single raw cell into a tagged number / text / empty value
"""

import math
import numbers
import re
from dataclasses import dataclass
from typing import Any, Iterable, Union

# Plain decimal literal, optional sign and exponent. Commas are stripped before matching.
NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")


class CellKind:
    NUMBER = "number"
    TEXT = "text"
    EMPTY = "empty"


@dataclass(frozen=True)
class Cell:
    kind: str
    value: Union[float, str]

    @classmethod
    def number(cls, value: float) -> "Cell":
        return cls(CellKind.NUMBER, float(value))

    @classmethod
    def text(cls, value: str) -> "Cell":
        return cls(CellKind.TEXT, value)

    @classmethod
    def empty(cls) -> "Cell":
        return cls(CellKind.EMPTY, "")

    @property
    def is_number(self) -> bool:
        return self.kind == CellKind.NUMBER

    @property
    def is_text(self) -> bool:
        return self.kind == CellKind.TEXT

    @property
    def is_empty(self) -> bool:
        return self.kind == CellKind.EMPTY

    @property
    def raw(self) -> Union[float, str]:
        """JSON value of the cell"""
        return self.value


EMPTY = Cell.empty()


def sanitize_cell(value: Any) -> Cell:
    """
    Coerce one cell. Blank becomes empty, thousands separators are dropped,
    finite numeric text becomes a number, anything else is kept as trimmed text.
    """
    if isinstance(value, Cell):
        return value
    if value is None:
        return EMPTY
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        number = float(value)
        if math.isnan(number):
            return EMPTY
        if math.isinf(number):
            return Cell.text(str(number))
        return Cell.number(number)

    text = str(value).strip()
    if not text:
        return EMPTY

    cleaned = text.replace(",", "")
    if NUMBER_PATTERN.match(cleaned):
        number = float(cleaned)
        if math.isfinite(number):
            return Cell.number(number)
    return Cell.text(text)


def sanitize_value(value: Any) -> Union[float, str]:
    """sanitize_cell, returning the plain JSON value (number, text or "")."""
    return sanitize_cell(value).raw


def sanitize_row(row: Iterable[Any]) -> list[Cell]:
    return [sanitize_cell(v) for v in row]
