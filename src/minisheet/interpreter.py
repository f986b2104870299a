import logging
from typing import Dict, Iterator, List, Tuple

from minisheet.ast import (
    CellRange,
    CellReference,
    Expression,
    FunctionCall,
    Group,
    Number,
    Operator,
)
from minisheet.errors import (
    CycleError,
    DivisionByZeroError,
    EvaluationError,
    FormulaError,
    ParseError,
)
from minisheet.expression import evaluate_expression
from minisheet.functions import NumberArg, apply
from minisheet.grid import Grid
from minisheet.parser import parse_arguments, parse_formula
from minisheet.types import ERROR, CellKind, coerce_to_number, is_error
from minisheet.utils import format_number, number_literal

# Failures of the arithmetic stage that default a free-form function
# argument to 0
ARITHMETIC_ERRORS = (ParseError, DivisionByZeroError, EvaluationError)

# Everything that collapses a formula to ERROR at the engine boundary
EVALUATION_ERRORS = (FormulaError, ArithmeticError, ValueError, RecursionError)


def format_result(value: float | str) -> str:
    """Display text for an evaluation result."""
    if is_error(value):
        return ERROR
    return format_number(value)


class EvaluationStack:
    """Tracks the cells whose dependencies are still being resolved.

    A reference that re-enters a cell already on the stack is a circular
    reference. One stack is created per top-level evaluation.
    """

    def __init__(self):
        self.stack: List[CellReference] = []

    def push(self, ref: CellReference) -> None:
        self.stack.append(ref)

    def pop(self) -> None:
        self.stack.pop()

    def contains(self, ref: CellReference) -> bool:
        return ref in self.stack

    def format_cycle_path(self, ref: CellReference) -> str:
        """Format the stack into a readable cycle path, e.g. `A1 -> A2 -> A1`."""
        path = [r.coords() for r in self.stack]
        path.append(ref.coords())
        return " -> ".join(path)


# Resolved values of the formula cells one evaluation depends on
CellValues = Dict[CellReference, float]


class FormulaInterpreter:
    """Evaluates formulas against a grid.

    Every evaluation starts again from the raw cell strings. The formula
    cells it depends on are resolved first, deepest dependency first, from an
    explicit work list, so a reference chain can be as long as the grid
    allows. Then function calls are applied, references are replaced by
    their values, and the remaining arithmetic text is handed to the
    expression evaluator.
    """

    def __init__(self, grid: Grid):
        self.grid = grid

    def evaluate(
        self, formula: str, origin: CellReference | None = None
    ) -> float | str:
        """Evaluate a formula to a number, or ERROR for any failure.

        `origin` is the cell holding the formula, if any, so a formula that
        reaches back to its own cell is reported as a cycle.
        """
        try:
            expression = parse_formula(formula)
            values = self._resolve_references(expression, origin)
            return evaluate_expression(self._render(expression, values))
        except EVALUATION_ERRORS as e:
            logging.debug(f"Formula {formula!r} evaluated to {ERROR}: {e}")
            return ERROR

    def apply_function(self, name: str, args_text: str) -> float | str:
        """Apply a library function to unparsed argument text like `A1:A3, 2`."""
        try:
            call = FunctionCall(name=name.upper(), arguments=parse_arguments(args_text))
            values = self._resolve_references(Expression(items=(call,)))
            return self._call(call, values)
        except EVALUATION_ERRORS as e:
            logging.debug(f"{name}({args_text}) evaluated to {ERROR}: {e}")
            return ERROR

    def _resolve_references(
        self, expression: Expression, origin: CellReference | None = None
    ) -> CellValues:
        """Evaluate every formula cell `expression` depends on, transitively.

        Depth-first over an explicit work list: a cell is evaluated once all
        of its own formula dependencies have values. The first failure
        aborts the whole evaluation, as any failing dependency makes the
        referencing formula fail too. Each cell is evaluated at most once.
        """
        values: CellValues = {}
        stack = EvaluationStack()
        if origin is not None:
            stack.push(origin)

        # (cell, its parsed formula, dependencies not visited yet); the
        # expression being evaluated sits at the bottom with no cell
        work: List[Tuple[CellReference | None, Expression, Iterator[CellReference]]] = [
            (None, expression, self._formula_references(expression))
        ]
        while work:
            cell, cell_expression, pending = work[-1]
            ref = next(pending, None)

            if ref is None:
                work.pop()
                if cell is not None:
                    stack.pop()
                    text = self._render(cell_expression, values)
                    values[cell] = evaluate_expression(text)
                continue

            if ref in values:
                continue
            if stack.contains(ref):
                cycle_path = stack.format_cycle_path(ref)
                logging.debug(f"Detected cycle: {cycle_path}")
                raise CycleError(f"Detected cycle: {cycle_path}")

            stack.push(ref)
            ref_expression = parse_formula(self.grid.cell(ref.row, ref.col).expression)
            work.append((ref, ref_expression, self._formula_references(ref_expression)))

        return values

    def _formula_references(self, expression: Expression) -> Iterator[CellReference]:
        """Formula cells referenced anywhere in `expression`, in reading order."""
        for node in expression.items:
            if isinstance(node, CellReference):
                refs: Iterator[CellReference] = iter((node,))
            elif isinstance(node, CellRange):
                refs = self._clip(node)
            elif isinstance(node, Group):
                yield from self._formula_references(node.inner)
                continue
            elif isinstance(node, FunctionCall):
                for arg in node.arguments:
                    yield from self._formula_references(arg)
                continue
            else:
                continue

            for ref in refs:
                if self.grid.cell(ref.row, ref.col).kind == CellKind.FORMULA:
                    yield ref

    def _render(self, expression: Expression, values: CellValues) -> str:
        """Replace calls and references by number literals, leaving arithmetic text."""
        parts: List[str] = []
        for node in expression.items:
            if isinstance(node, Number):
                parts.append(node.text)
            elif isinstance(node, Operator):
                parts.append(node.symbol)
            elif isinstance(node, Group):
                parts.append(f"({self._render(node.inner, values)})")
            elif isinstance(node, FunctionCall):
                parts.append(number_literal(self._call(node, values)))
            elif isinstance(node, CellReference):
                parts.append(number_literal(self._cell_value(node, values)))
            elif isinstance(node, CellRange):
                raise ParseError(
                    f"Range {node.coords()} can only be used as a function argument"
                )
            else:
                raise ValueError(f"Unknown node type: {type(node)}")
        # Keep adjacent operands apart so `=A1 A2` fails instead of concatenating
        return " ".join(parts)

    def _call(self, node: FunctionCall, values: CellValues) -> float:
        args = [
            self._resolve_argument(arg, values) for arg in node.arguments if arg.items
        ]
        return apply(node.name, *args)

    def _resolve_argument(self, arg: Expression, values: CellValues) -> NumberArg:
        if len(arg.items) == 1:
            node = arg.items[0]
            if isinstance(node, CellRange):
                return [self._cell_value(ref, values) for ref in self._clip(node)]
            if isinstance(node, CellReference):
                return self._cell_value(node, values)
            if isinstance(node, Number):
                return float(node.text)

        # Free-form sub-expression: reference and call failures propagate,
        # arithmetic failures count as 0
        text = self._render(arg, values)
        try:
            return evaluate_expression(text)
        except ARITHMETIC_ERRORS as e:
            logging.debug(f"Argument {text!r} defaulted to 0: {e}")
            return 0.0

    def _cell_value(self, ref: CellReference, values: CellValues) -> float:
        """Numeric value of a cell; out-of-grid, empty and text cells are 0."""
        content = self.grid.cell(ref.row, ref.col)
        if content.kind != CellKind.FORMULA:
            return coerce_to_number(content)
        # Resolved beforehand by _resolve_references
        return values[ref]

    def _clip(self, node: CellRange) -> Iterator[CellReference]:
        """Row-major cells of the part of a range that lies inside the grid."""
        min_row, max_row, min_col, max_col = node.bounds()
        if min_row >= self.grid.rows or min_col >= self.grid.cols:
            return iter(())
        clipped = CellRange(
            start=CellReference(min_row, min_col),
            end=CellReference(
                min(max_row, self.grid.rows - 1), min(max_col, self.grid.cols - 1)
            ),
        )
        return clipped.cells()
