from typing import Iterable, List, NamedTuple

from typing_extensions import Self

from minisheet.types import EMPTY_CELL, CellContent, classify


class Snapshot(NamedTuple):
    """Immutable copy of grid contents and dimensions."""

    cells: tuple[tuple[str, ...], ...]
    rows: int
    cols: int


class Grid:
    """Rectangular store of raw cell text.

    Cells are classified (empty, literal, formula) once when written. Every
    row always has exactly `cols` cells, and both dimensions stay >= 1.
    """

    def __init__(self, rows: int, cols: int):
        if rows < 1 or cols < 1:
            raise ValueError(f"Grid must be at least 1x1, got {rows}x{cols}")
        self._cells: List[List[CellContent]] = [
            [EMPTY_CELL] * cols for _ in range(rows)
        ]

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[str]]) -> Self:
        """Build a grid from ragged rows, padding short rows with empty cells."""
        data = [list(row) for row in rows]
        n_rows = max(len(data), 1)
        n_cols = max((len(row) for row in data), default=0)
        grid = cls(n_rows, max(n_cols, 1))
        for r, row in enumerate(data):
            for c, text in enumerate(row):
                grid.set(r, c, text)
        return grid

    @property
    def rows(self) -> int:
        return len(self._cells)

    @property
    def cols(self) -> int:
        return len(self._cells[0])

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    def cell(self, row: int, col: int) -> CellContent:
        """Classified content; out-of-bounds reads are empty, not an error."""
        if not self.in_bounds(row, col):
            return EMPTY_CELL
        return self._cells[row][col]

    def get(self, row: int, col: int) -> str:
        return self.cell(row, col).raw

    def set(self, row: int, col: int, text: str | None) -> bool:
        if not self.in_bounds(row, col):
            return False
        self._cells[row][col] = classify(text)
        return True

    def insert_row(self) -> None:
        self._cells.append([EMPTY_CELL] * self.cols)

    def insert_column(self) -> None:
        for row in self._cells:
            row.append(EMPTY_CELL)

    def delete_row(self) -> bool:
        """Remove the last row; rejected when it is the only one."""
        if self.rows <= 1:
            return False
        self._cells.pop()
        return True

    def delete_column(self) -> bool:
        """Remove the last column; rejected when it is the only one."""
        if self.cols <= 1:
            return False
        for row in self._cells:
            row.pop()
        return True

    def to_rows(self) -> List[List[str]]:
        return [[content.raw for content in row] for row in self._cells]

    def snapshot(self) -> Snapshot:
        return Snapshot(
            cells=tuple(tuple(content.raw for content in row) for row in self._cells),
            rows=self.rows,
            cols=self.cols,
        )

    def restore(self, snapshot: Snapshot) -> None:
        """Replace contents and dimensions in one step."""
        self._cells = [[classify(text) for text in row] for row in snapshot.cells]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid(rows={self.rows}, cols={self.cols})"
