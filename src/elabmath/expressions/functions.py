"""Arithmetic helpers, constants and the function table used by the parser.

Values are either Python floats or pint quantities. Operations on plain floats
follow the usual calculator conventions (division by zero gives an infinity),
operations on quantities are delegated to pint.
"""

import math
from functools import reduce
from typing import Callable, Union

import pint

from .models import EvaluationFailure

Value = Union[float, pint.Quantity]


CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
    "phi": (1 + math.sqrt(5)) / 2,
    "Infinity": math.inf,
    "inf": math.inf,
    "NaN": math.nan,
}


def is_quantity(value) -> bool:
    return isinstance(value, pint.Quantity)


def as_number(value: Value, unit: str = "dimensionless") -> float:
    """
    Convert a value to a plain float.

    Quantities are converted to ``unit`` first, so ``sin(90 deg)`` works the
    same as ``sin(pi / 2)``.

    Raises:
        EvaluationFailure: If the quantity cannot be expressed in ``unit``
    """
    if not is_quantity(value):
        return float(value)
    try:
        return float(value.to(unit).magnitude)
    except pint.DimensionalityError as e:
        raise EvaluationFailure(f"Expected a {unit} value, got '{value.units}'") from e


# Operators


def add(left: Value, right: Value) -> Value:
    return left + right


def subtract(left: Value, right: Value) -> Value:
    return left - right


def multiply(left: Value, right: Value) -> Value:
    return left * right


def divide(left: Value, right: Value) -> Value:
    if not is_quantity(left) and not is_quantity(right) and right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def power(base: Value, exponent: Value) -> Value:
    exponent = as_number(exponent)
    if exponent.is_integer():
        exponent = int(exponent)
    result = base ** exponent
    if isinstance(result, complex) or (is_quantity(result) and isinstance(result.magnitude, complex)):
        raise EvaluationFailure(f"{base} ^ {exponent} has no real result")
    return result


def negate(value: Value) -> Value:
    return -value


def factorial(value: Value) -> float:
    number = as_number(value)
    if number < 0 and number.is_integer():
        raise EvaluationFailure("Factorial is not defined for negative integers")
    if number.is_integer() and number <= 170:
        return float(math.factorial(int(number)))
    return math.gamma(number + 1)


def convert(value: Value, target: Value) -> pint.Quantity:
    """Convert ``value`` to the unit of ``target`` (the right-hand side of ``to``)."""
    if not is_quantity(target) or not target.unit_items():
        raise EvaluationFailure("Conversion target must be a unit")
    if target.magnitude != 1:
        raise EvaluationFailure("Conversion target must be a unit without a number")
    if not is_quantity(value):
        value = target._REGISTRY.Quantity(value, "dimensionless")
    return value.to(target.units)


# Functions


def _round_half_away(number: float, digits: int = 0) -> float:
    if math.isnan(number) or math.isinf(number):
        return number
    factor = 10.0 ** digits
    return math.copysign(math.floor(abs(number) * factor + 0.5) / factor, number)


def _apply_to_magnitude(value: Value, operation: Callable[[float], float]) -> Value:
    """Apply a rounding-type operation while keeping the unit of a quantity."""
    if is_quantity(value):
        return value._REGISTRY.Quantity(operation(float(value.magnitude)), value.units)
    return operation(float(value))


def _round(value: Value, digits: Value = 0.0) -> Value:
    places = as_number(digits)
    if not places.is_integer() or places < 0:
        raise EvaluationFailure("Number of decimals in round() must be a non-negative integer")
    return _apply_to_magnitude(value, lambda number: _round_half_away(number, int(places)))


def _sqrt(value: Value) -> Value:
    if not is_quantity(value) and value < 0:
        raise EvaluationFailure("sqrt() of a negative number has no real result")
    return value ** 0.5


def _cbrt(value: Value) -> Value:
    if is_quantity(value):
        return value ** (1 / 3)
    return math.copysign(abs(value) ** (1 / 3), value)


def _log(value: Value, base: Value = math.e) -> float:
    number = as_number(value)
    if number <= 0:
        raise EvaluationFailure("log() is only defined for positive numbers")
    return math.log(number, as_number(base))


def _unary(function: Callable[[float], float], unit: str = "dimensionless") -> Callable[[Value], float]:
    def call(value: Value) -> float:
        return function(as_number(value, unit))

    return call


def _mean(*values: Value) -> Value:
    return divide(reduce(add, values), float(len(values)))


def _mod(left: Value, right: Value) -> Value:
    if not is_quantity(left) and not is_quantity(right) and right == 0:
        return math.nan
    return left % right


FUNCTIONS: dict[str, Callable[..., Value]] = {
    "sqrt": _sqrt,
    "cbrt": _cbrt,
    "abs": abs,
    "exp": _unary(math.exp),
    "log": _log,
    "ln": _unary(math.log),
    "log10": _unary(math.log10),
    "log2": _unary(math.log2),
    "sin": _unary(math.sin, "radian"),
    "cos": _unary(math.cos, "radian"),
    "tan": _unary(math.tan, "radian"),
    "asin": _unary(math.asin),
    "acos": _unary(math.acos),
    "atan": _unary(math.atan),
    "sinh": _unary(math.sinh),
    "cosh": _unary(math.cosh),
    "tanh": _unary(math.tanh),
    "round": _round,
    "floor": lambda value: _apply_to_magnitude(value, lambda number: float(math.floor(number))),
    "ceil": lambda value: _apply_to_magnitude(value, lambda number: float(math.ceil(number))),
    "min": min,
    "max": max,
    "mean": _mean,
    "sum": lambda *values: reduce(add, values),
    "pow": power,
    "mod": _mod,
}


def call_function(name: str, args: list[Value]) -> Value:
    """
    Call a function from the table.

    Raises:
        EvaluationFailure: If the function does not accept the arguments
    """
    function = FUNCTIONS[name]
    if not args:
        raise EvaluationFailure(f"{name}() needs at least one argument")
    try:
        return function(*args)
    except TypeError as e:
        raise EvaluationFailure(f"Wrong arguments for {name}(): {e}") from e
