"""Evaluation results, rendered values and errors."""

from dataclasses import dataclass
from typing import Any, ClassVar, Union

from ..units.system import UnitTerm


class ElabMathError(Exception):
    """Base class for expression errors."""

    pass


class ExpressionSyntaxError(ElabMathError):
    """Raised when an expression cannot be tokenized or parsed."""

    pass


class UnknownIdentifierError(ElabMathError):
    """Raised when a name is neither a function, a constant nor a unit."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Undefined symbol '{name}'")


class EvaluationFailure(ElabMathError):
    """Raised when a well-formed expression cannot be computed."""

    pass


@dataclass(frozen=True)
class Scalar:
    """A plain number."""

    value: float


@dataclass(frozen=True)
class UnitValue:
    """A number carrying a (possibly compound) unit."""

    magnitude: float
    terms: tuple[UnitTerm, ...]
    quantity: Any  # pint Quantity the terms were read from
    fixed_prefix: bool = False  # Result of a `to` conversion, shown in the requested unit


@dataclass(frozen=True)
class TextValue:
    """A list item that did not evaluate and is shown as written."""

    text: str


@dataclass(frozen=True)
class ListValue:
    """A comma-separated list, each item evaluated on its own."""

    items: tuple[Union[Scalar, UnitValue, TextValue], ...]


@dataclass(frozen=True)
class EvaluationError:
    """The expression could not be evaluated."""

    expression: str
    message: str


EvaluationResult = Union[Scalar, UnitValue, ListValue, EvaluationError]


@dataclass(frozen=True)
class PlainText:
    """Output that must be treated as text."""

    text: str
    is_markup: ClassVar[bool] = False


@dataclass(frozen=True)
class MarkupFragment:
    """Output that contains HTML tags (e.g. ``m<sup>2</sup>``)."""

    text: str
    is_markup: ClassVar[bool] = True


RenderedValue = Union[PlainText, MarkupFragment]
