import logging
from pathlib import Path
from typing import Iterable, List

import pandas as pd

from minisheet.ast import CellReference
from minisheet.grid import Grid
from minisheet.history import History
from minisheet.interpreter import FormulaInterpreter, format_result
from minisheet.reader import LoadResult, read_csv, read_xlsx
from minisheet.types import CellKind
from minisheet.utils import encode_column
from minisheet.writer import write_csv, write_xlsx

DEFAULT_ROWS = 45
DEFAULT_COLS = 13

default_csv_path: str | Path = "sheet.csv"

# Maximum undo depth for new spreadsheets; None is unbounded
default_history_limit: int | None = None


def set_default_csv_path(path: str | Path):
    global default_csv_path
    default_csv_path = path


def set_history_limit(limit: int | None):
    global default_history_limit
    if limit is not None and limit < 0:
        raise ValueError(f"History limit must be non-negative, got {limit}")
    default_history_limit = limit


class Spreadsheet:
    """One editing session: a grid, its undo history and a formula interpreter.

    Every mutation goes through this class so it can be recorded in the
    history first. Reads never mutate, and formulas are re-evaluated from
    the raw cell text on every read.
    """

    def __init__(
        self,
        rows: int = DEFAULT_ROWS,
        cols: int = DEFAULT_COLS,
        history_limit: int | None = None,
    ):
        self.grid = Grid(rows, cols)
        limit = history_limit if history_limit is not None else default_history_limit
        self.history = History(self.grid, limit=limit)
        self.interpreter = FormulaInterpreter(self.grid)
        self.show_formulas = False
        self.clipboard: str | None = None

    @property
    def rows(self) -> int:
        return self.grid.rows

    @property
    def cols(self) -> int:
        return self.grid.cols

    def column_names(self) -> List[str]:
        return [encode_column(i) for i in range(self.cols)]

    # Cells
    def get_raw_cell(self, row: int, col: int) -> str:
        return self.grid.get(row, col)

    def set_raw_cell(self, row: int, col: int, text: str, *, silent: bool = False) -> bool:
        """Store raw text in a cell, recording the previous state unless `silent`.

        Writes outside the grid are rejected without touching the history.
        """
        if not self.grid.in_bounds(row, col):
            return False
        if not silent:
            self.history.record_before_mutation()
        return self.grid.set(row, col, text)

    def get_display_value(self, row: int, col: int) -> str:
        content = self.grid.cell(row, col)
        if self.show_formulas or content.kind != CellKind.FORMULA:
            return content.raw
        value = self.interpreter.evaluate(content.raw, origin=CellReference(row, col))
        return format_result(value)

    def evaluate(self, formula: str) -> float | str:
        return self.interpreter.evaluate(formula)

    def insert_function(self, row: int, col: int, name: str, args: str | Iterable[str]) -> str:
        """Write `=NAME(args)` into a cell and return the formula text."""
        if not isinstance(args, str):
            args = ",".join(args)
        formula = f"={name.upper()}({args})"
        self.set_raw_cell(row, col, formula)
        return formula

    # Clipboard
    def copy_cell(self, row: int, col: int) -> bool:
        if not self.grid.in_bounds(row, col):
            return False
        self.clipboard = self.grid.get(row, col)
        return True

    def cut_cell(self, row: int, col: int) -> bool:
        return self.copy_cell(row, col) and self.set_raw_cell(row, col, "")

    def paste_cell(self, row: int, col: int) -> bool:
        if self.clipboard is None:
            return False
        return self.set_raw_cell(row, col, self.clipboard)

    # Structure
    def insert_row(self) -> bool:
        self.history.record_before_mutation()
        self.grid.insert_row()
        return True

    def insert_column(self) -> bool:
        self.history.record_before_mutation()
        self.grid.insert_column()
        return True

    def delete_row(self) -> bool:
        if self.rows <= 1:
            return False
        self.history.record_before_mutation()
        return self.grid.delete_row()

    def delete_column(self) -> bool:
        if self.cols <= 1:
            return False
        self.history.record_before_mutation()
        return self.grid.delete_column()

    # History
    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # Persistence
    def load_csv(self, path: str | Path | None = None) -> LoadResult:
        """Replace the grid with the contents of a CSV file.

        The grid is only touched when the load succeeds, and a successful
        load can be undone. An empty file gives a blank grid of the default
        size.
        """
        result = read_csv(path if path is not None else default_csv_path)
        if result.ok:
            self._replace_contents(result.rows)
        return result

    def save_csv(self, path: str | Path | None = None) -> Path:
        return write_csv(self.grid, path if path is not None else default_csv_path)

    def load_xlsx(self, path: str | Path) -> LoadResult:
        result = read_xlsx(path)
        if result.ok:
            self._replace_contents(result.rows)
        return result

    def save_xlsx(self, path: str | Path) -> Path:
        return write_xlsx(self.grid, path)

    def _replace_contents(self, rows: List[List[str]]) -> None:
        if rows:
            loaded = Grid.from_rows(rows)
        else:
            logging.info(f"Loaded an empty sheet, resetting to {DEFAULT_ROWS}x{DEFAULT_COLS}")
            loaded = Grid(DEFAULT_ROWS, DEFAULT_COLS)
        self.history.record_before_mutation()
        self.grid.restore(loaded.snapshot())

    # Views
    def to_dataframe(self, display: bool = True) -> pd.DataFrame:
        """Grid as a DataFrame indexed by row number, with lettered columns.

        Holds display values by default, raw cell text with `display=False`.
        """
        read = self.get_display_value if display else self.get_raw_cell
        data = [[read(r, c) for c in range(self.cols)] for r in range(self.rows)]
        return pd.DataFrame(
            data,
            index=pd.RangeIndex(1, self.rows + 1),
            columns=self.column_names(),
        )

    def __repr__(self) -> str:
        return f"Spreadsheet(rows={self.rows}, cols={self.cols})"
