class FormulaError(Exception):
    """Base class for every failure raised while evaluating a formula."""


class ParseError(FormulaError):
    pass


class DivisionByZeroError(FormulaError):
    pass


class UnknownFunctionError(FormulaError):
    pass


class FunctionError(FormulaError):
    pass


class EvaluationError(FormulaError):
    pass


class CycleError(FormulaError):
    pass
