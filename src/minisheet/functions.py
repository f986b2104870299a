import math
from typing import Any, Callable, Optional, ParamSpec, overload

import numpy as np

from minisheet.errors import FunctionError, UnknownFunctionError

P = ParamSpec("P")

# A resolved argument: a single number, or the row-major values of a range
NumberArg = float | list[float]

SHEET_FUNCTIONS: dict[str, Callable[..., float]] = {}


@overload
def sheet_fn(
    fn: Callable[P, float], *, name: Optional[str] = None
) -> Callable[P, float]: ...
@overload
def sheet_fn(
    fn: None = None, *, name: Optional[str] = None
) -> Callable[[Callable[P, float]], Callable[P, float]]: ...


def sheet_fn(
    fn: Callable[P, float] | None = None,
    *,
    name: Optional[str] = None,
) -> Any:
    """Decorator to register a function in the sheet function library."""

    def decorator(fn: Callable[P, float]) -> Callable[P, float]:
        # Staticmethods are registered through their underlying function but
        # returned as-is to keep method semantics
        underlying = fn.__func__ if isinstance(fn, staticmethod) else fn
        reg_name = (name or underlying.__name__).upper()
        SHEET_FUNCTIONS[reg_name] = underlying
        return fn

    if fn:
        return decorator(fn)
    else:
        return decorator


def flatten_args(*args: NumberArg) -> list[float]:
    """Flatten function arguments into a single list of numbers."""
    result: list[float] = []
    for arg in args:
        if isinstance(arg, list):
            result.extend(arg)
        else:
            result.append(arg)
    return result


class SheetFunctions:
    """Aggregate functions available in formulas.

    Every function takes any number of arguments, each a number or a list of
    numbers from a range, and returns 0 for an empty input unless noted.
    """

    @staticmethod
    def SUM(*args: NumberArg) -> float:
        return float(np.sum(flatten_args(*args)))

    @staticmethod
    def AVERAGE(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return float(np.mean(nums)) if nums else 0.0

    AVG = AVERAGE

    @staticmethod
    def MIN(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return min(nums) if nums else 0.0

    @staticmethod
    def MAX(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return max(nums) if nums else 0.0

    @staticmethod
    def COUNT(*args: NumberArg) -> float:
        """Number of resolved values, so a range counts each of its cells."""
        return float(len(flatten_args(*args)))

    @staticmethod
    def MEDIAN(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return float(np.median(nums)) if nums else 0.0

    @staticmethod
    def MODE(*args: NumberArg) -> float:
        """Most frequent value; ties go to the smallest value."""
        nums = flatten_args(*args)
        if not nums:
            return 0.0

        counts: dict[float, int] = {}
        for v in nums:
            counts[v] = counts.get(v, 0) + 1

        max_count = max(counts.values())
        candidates = [v for v, c in counts.items() if c == max_count]
        return float(min(candidates))

    @staticmethod
    def STDEV(*args: NumberArg) -> float:
        """Sample standard deviation (n - 1 denominator); 0 below two values."""
        nums = flatten_args(*args)
        if len(nums) <= 1:
            return 0.0
        return float(np.std(nums, ddof=1))

    @staticmethod
    def RANGE(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return max(nums) - min(nums) if nums else 0.0

    @staticmethod
    def PRODUCT(*args: NumberArg) -> float:
        nums = flatten_args(*args)
        return float(math.prod(nums)) if nums else 0.0

    @staticmethod
    def ABS(*args: NumberArg) -> float:
        """Absolute value of the first value; extra arguments are ignored."""
        nums = flatten_args(*args)
        return abs(nums[0]) if nums else 0.0

    @staticmethod
    def SQRT(*args: NumberArg) -> float:
        """Square root of the first value; extra arguments are ignored."""
        nums = flatten_args(*args)
        if not nums:
            return 0.0
        if nums[0] < 0:
            raise FunctionError("SQRT requires non-negative input")
        return math.sqrt(nums[0])

    @staticmethod
    def MEAN(*args: NumberArg) -> float:
        """Geometric mean, product ** (1 / n).

        Not the arithmetic mean: sheets saved with MEAN rely on this, use
        AVERAGE for the arithmetic mean.
        """
        nums = flatten_args(*args)
        if not nums:
            return 0.0
        try:
            return math.pow(math.prod(nums), 1.0 / len(nums))
        except ValueError as e:
            raise FunctionError(f"MEAN is undefined for these values: {e}") from e


# Register the static methods of SheetFunctions by their names
for _name, _member in SheetFunctions.__dict__.items():
    if _name.startswith("_"):
        continue
    if isinstance(_member, staticmethod) and _name not in SHEET_FUNCTIONS:
        SHEET_FUNCTIONS[_name] = _member.__func__


def apply(name: str, *args: NumberArg) -> float:
    """Apply a library function by case-insensitive name."""
    fn = SHEET_FUNCTIONS.get(name.upper())
    if fn is None:
        raise UnknownFunctionError(f"Unknown function: {name}")
    result = float(fn(*args))
    if not math.isfinite(result):
        raise FunctionError(f"{name.upper()} produced a non-finite result")
    return result
