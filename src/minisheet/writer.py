import csv
import logging
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from minisheet.grid import Grid
from minisheet.types import CellKind, parse_number


def write_csv(grid: Grid, path: str | Path) -> Path:
    """Write raw cell text as CSV, one grid row per record.

    Fields are quoted only when they contain a comma, a double quote or a
    line break; embedded quotes are doubled. The one exception is a row made
    of a single empty field, which `csv` writes as `""` so that it does not
    read back as a blank line with no fields.
    """
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerows(grid.to_rows())
    logging.info(f"Saved {grid.rows}x{grid.cols} grid to {path}")
    return path


def write_xlsx(grid: Grid, path: str | Path, title: str = "Sheet1") -> Path:
    """Write raw cell text to a single-sheet xlsx workbook.

    Numeric literals are stored as numbers and formulas as formula text.
    Control characters Excel cannot store are removed.
    """
    path = Path(path)
    wb = Workbook()
    ws = wb.active
    ws.title = title

    for row in range(grid.rows):
        for col in range(grid.cols):
            content = grid.cell(row, col)
            if content.kind == CellKind.EMPTY:
                continue
            value: str | float = ILLEGAL_CHARACTERS_RE.sub("", content.raw)
            if content.kind == CellKind.LITERAL:
                number = parse_number(content.raw)
                if number is not None:
                    value = number
            # openpyxl is 1-indexed
            ws.cell(row=row + 1, column=col + 1, value=value)

    wb.save(path)
    logging.info(f"Saved {grid.rows}x{grid.cols} grid to {path}")
    return path
