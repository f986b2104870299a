import re

import numpy as np
from openpyxl.utils import column_index_from_string, get_column_letter

from minisheet.ast import CellRange, CellReference

# Constants
CELL_REF_REGEX = re.compile(r"([A-Za-z]+)(\d+)")
COLUMN_REGEX = re.compile(r"[A-Za-z]+")

# openpyxl names columns up to ZZZ (1-based 18278)
OPENPYXL_MAX_COLUMN = 18278


def encode_column(index: int) -> str:
    """Bijective base-26 column name: 0 -> A, 25 -> Z, 26 -> AA, 702 -> AAA."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    # 1-based from here on
    index += 1
    if index <= OPENPYXL_MAX_COLUMN:
        return get_column_letter(index)
    letters = []
    while index > 0:
        index, rem = divmod(index - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def decode_column(name: str) -> int:
    """Inverse of `encode_column`, case-insensitive."""
    if not COLUMN_REGEX.fullmatch(name):
        raise ValueError(f"Invalid column name: {name!r}")
    name = name.upper()
    if len(name) <= 3:
        return column_index_from_string(name) - 1
    index = 0
    for char in name:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index - 1


def parse_address(text: str) -> CellReference | None:
    """Parse `<letters><digits>` into a zero-indexed reference, or None."""
    match = CELL_REF_REGEX.fullmatch(text.strip())
    if not match:
        return None
    col, row = match.groups()
    row_number = int(row)
    # Row 0 does not exist in A1 notation
    if row_number < 1:
        return None
    return CellReference(row=row_number - 1, col=decode_column(col))


def parse_range(text: str) -> CellRange | CellReference | None:
    """Parse `A1:B2` or a single `A1`; more than one colon is invalid."""
    parts = text.split(":")
    if len(parts) == 1:
        return parse_address(parts[0])
    if len(parts) != 2:
        return None
    start = parse_address(parts[0])
    end = parse_address(parts[1])
    if start is None or end is None:
        return None
    return CellRange(start=start, end=end)


def format_number(value: float) -> str:
    """Display form: integral values without a decimal point, others with two."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def number_literal(value: float) -> str:
    """Render a number as text the arithmetic tokenizer accepts.

    Positional notation only (no exponent) and negative values parenthesised
    so they splice safely after any operator.
    """
    if not np.isfinite(value):
        raise ValueError(f"Cannot splice non-finite value {value}")
    # Adding 0.0 folds -0.0 into 0.0
    text = np.format_float_positional(value + 0.0, trim="-")
    if value < 0:
        return f"({text})"
    return text
