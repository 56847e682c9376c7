"""Expression evaluation and result formatting."""

from .evaluator import ExpressionEvaluator, split_top_level
from .formatter import ResultFormatter, format_number
from .models import (
    ElabMathError,
    EvaluationError,
    EvaluationFailure,
    EvaluationResult,
    ExpressionSyntaxError,
    ListValue,
    MarkupFragment,
    PlainText,
    RenderedValue,
    Scalar,
    TextValue,
    UnitValue,
    UnknownIdentifierError,
)
from .parser import Parser, parse_expression

__all__ = [
    "ExpressionEvaluator",
    "split_top_level",
    "ResultFormatter",
    "format_number",
    "ElabMathError",
    "EvaluationError",
    "EvaluationFailure",
    "EvaluationResult",
    "ExpressionSyntaxError",
    "ListValue",
    "MarkupFragment",
    "PlainText",
    "RenderedValue",
    "Scalar",
    "TextValue",
    "UnitValue",
    "UnknownIdentifierError",
    "Parser",
    "parse_expression",
]
