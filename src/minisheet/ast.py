from typing import Iterator, NamedTuple


class CellReference(NamedTuple):
    # Zero-indexed internally, displayed 1-based
    row: int
    col: int

    def coords(self) -> str:
        # Avoid circular imports
        from minisheet.utils import encode_column

        return f"{encode_column(self.col)}{self.row + 1}"


class CellRange(NamedTuple):
    start: CellReference
    end: CellReference

    def bounds(self) -> tuple[int, int, int, int]:
        """(min_row, max_row, min_col, max_col) regardless of corner order."""
        return (
            min(self.start.row, self.end.row),
            max(self.start.row, self.end.row),
            min(self.start.col, self.end.col),
            max(self.start.col, self.end.col),
        )

    def cells(self) -> Iterator[CellReference]:
        """Iterate the range in row-major order."""
        min_row, max_row, min_col, max_col = self.bounds()
        for row in range(min_row, max_row + 1):
            for col in range(min_col, max_col + 1):
                yield CellReference(row, col)

    def coords(self) -> str:
        return f"{self.start.coords()}:{self.end.coords()}"


class Number(NamedTuple):
    text: str


class Operator(NamedTuple):
    symbol: str


class Expression(NamedTuple):
    """A flat run of items; arithmetic structure is left to the evaluator."""

    items: "tuple[ASTNode, ...]"


class Group(NamedTuple):
    inner: Expression


class FunctionCall(NamedTuple):
    name: str
    arguments: tuple[Expression, ...]


# Type alias for all possible AST nodes
ASTNode = CellReference | CellRange | Number | Operator | Group | FunctionCall
