import re
from enum import IntEnum, auto
from typing import NamedTuple

# Display sentinel shared by every formula failure kind
ERROR = "ERROR"

NUMBER_REGEX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class CellKind(IntEnum):
    EMPTY = auto()
    LITERAL = auto()
    FORMULA = auto()


class CellContent(NamedTuple):
    kind: CellKind
    raw: str

    @property
    def expression(self) -> str:
        """Formula body without the leading `=`."""
        if self.kind != CellKind.FORMULA:
            raise ValueError(f"Not a formula: {self.raw!r}")
        return self.raw[1:].strip()


EMPTY_CELL = CellContent(CellKind.EMPTY, "")


def classify(raw: str | None) -> CellContent:
    """Decide the kind of a raw cell string once, at the grid boundary."""
    if not raw:
        return EMPTY_CELL
    if raw.startswith("="):
        return CellContent(CellKind.FORMULA, raw)
    return CellContent(CellKind.LITERAL, raw)


def parse_number(text: str) -> float | None:
    """Parse a numeric literal, returning None for anything else.

    Accepts optional sign, decimals and an exponent. Rejects the special
    spellings `float()` would otherwise let through (nan, inf, 1_000).
    """
    text = text.strip()
    if not NUMBER_REGEX.fullmatch(text):
        return None
    return float(text)


def coerce_to_number(content: CellContent) -> float:
    """Numeric value of a non-formula cell: empty and text count as 0."""
    if content.kind == CellKind.EMPTY:
        return 0.0
    value = parse_number(content.raw)
    return 0.0 if value is None else value


def is_error(value: object) -> bool:
    return isinstance(value, str) and value == ERROR
