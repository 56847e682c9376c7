"""Expression evaluation with fail-open error handling."""

import logging
from typing import Iterable, Optional

import pint
from pint.errors import PintError

from ..config import Settings, settings as default_settings
from ..units.system import UnitSystem, get_unit_system
from .formatter import ResultFormatter
from .functions import Value
from .lexer import Lexer
from .models import (
    ElabMathError,
    EvaluationError,
    EvaluationResult,
    ListValue,
    RenderedValue,
    Scalar,
    TextValue,
    UnitValue,
)
from .parser import Parser

logger = logging.getLogger(__name__)

# Anything the parser, pint or float arithmetic can raise for a bad expression
EVALUATION_ERRORS = (ElabMathError, PintError, ArithmeticError, ValueError, TypeError, AttributeError)


def split_top_level(expression: str) -> list[str]:
    """Split on commas that are not inside parentheses."""
    parts = []
    depth = 0
    start = 0
    for index, char in enumerate(expression):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0:
            parts.append(expression[start:index])
            start = index + 1
    parts.append(expression[start:])
    return parts


class ExpressionEvaluator:
    """
    Evaluate fully resolved expressions against a unit system.

    evaluate() never raises for a bad expression: it returns EvaluationError so
    the caller can keep the original placeholder text.
    """

    def __init__(
        self,
        unit_system: Optional[UnitSystem] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.unit_system = unit_system or get_unit_system()
        self.formatter = ResultFormatter(self.unit_system, self.settings)

    def evaluate(self, expression: str, text_items: Iterable[str] = ()) -> EvaluationResult:
        """
        Evaluate an expression.

        A top-level comma list (what ``['selector']`` references produce) is
        evaluated item by item. Items whose text is one of ``text_items`` (the
        element texts a list selector pulled in) are kept as text when they are
        a bare name or do not evaluate; any other item that fails makes the
        whole expression fail.

        Args:
            expression: Expression without ``{{ }}`` and without references
            text_items: Texts of list-selector items, as inserted into the expression

        Returns:
            Scalar, UnitValue, ListValue or EvaluationError
        """
        parts = split_top_level(expression)
        if len(parts) == 1:
            try:
                return self._evaluate_one(expression)
            except EVALUATION_ERRORS as e:
                logger.warning(f"Could not evaluate '{expression}': {e}")
                return EvaluationError(expression=expression, message=str(e))

        referenced = {text.strip() for text in text_items}
        items = []
        for part in parts:
            text = part.strip()
            if text in referenced and self._is_bare_name(part):
                items.append(TextValue(text))
                continue
            try:
                items.append(self._evaluate_one(part))
            except EVALUATION_ERRORS as e:
                if text not in referenced:
                    logger.warning(f"Could not evaluate list item '{text}' of '{expression}': {e}")
                    return EvaluationError(expression=expression, message=str(e))
                logger.debug(f"List item '{text}' kept as text: {e}")
                items.append(TextValue(text))
        return ListValue(items=tuple(items))

    def render(self, expression: str, text_items: Iterable[str] = ()) -> Optional[RenderedValue]:
        """Evaluate and format an expression, or return None if it does not evaluate."""
        result = self.evaluate(expression, text_items)
        if isinstance(result, EvaluationError):
            return None
        return self.formatter.format(result)

    def _is_bare_name(self, text: str) -> bool:
        # Words pulled in by list selectors ("a", "b", "c") stay text, not units
        try:
            tokens = Lexer(text, self.unit_system).tokenize()
        except ElabMathError:
            return False
        return len(tokens) == 2 and tokens[0].type == "IDENT"

    def _evaluate_one(self, expression: str) -> EvaluationResult:
        parser = Parser(expression, self.unit_system)
        return self._to_result(parser.parse(), fixed_prefix=parser.converted)

    def _to_result(self, value: Value, fixed_prefix: bool = False) -> EvaluationResult:
        if not isinstance(value, pint.Quantity):
            return Scalar(float(value))

        # Check the written units; root units of mL / L already cancel
        if not value.unit_items():
            return Scalar(float(value.magnitude))
        # Ratios like m / km collapse to a number; single angle units stay
        if value.dimensionless and len(value.unit_items()) > 1:
            return Scalar(float(value.to("dimensionless").magnitude))

        return UnitValue(
            magnitude=float(value.magnitude),
            terms=self.unit_system.split_terms(value),
            quantity=value,
            fixed_prefix=fixed_prefix,
        )
