"""Turn evaluation results into display strings.

Numbers use the shortest representation that reads back to the same float.
Units are rewritten for display only (``degC`` -> ``°C``, ``ft**2`` ->
``ft<sup>2</sup>``, micro prefix -> ``μ``); magnitudes are never changed here
except by the display settings: automatic SI prefixes (on by default, never
for `to` results), significant digits and microliter rounding steps.
"""

import html
import logging
import math
from decimal import Decimal
from typing import Optional

from ..config import Settings, settings as default_settings
from ..units.definitions import GREEK_MU, SI_PREFIXED_UNITS, Prefix
from ..units.system import UnitSystem, UnitTerm
from .models import (
    EvaluationError,
    EvaluationResult,
    ListValue,
    MarkupFragment,
    PlainText,
    RenderedValue,
    Scalar,
    TextValue,
    UnitValue,
)

logger = logging.getLogger(__name__)

# Automatic prefixes aim for magnitudes near 10^1.2 and leave the prefix alone
# while log10(magnitude) - 1.2 stays inside this range
PREFIX_TARGET_EXP = 1.2
PREFIX_KEEP_RANGE = (-2.200001, 1.800001)

# Registry unit name -> (display text, contains markup)
UNIT_NAME_REWRITES: dict[str, tuple[str, bool]] = {
    "degree": ("°", False),
    "degree_Celsius": ("°C", False),
    "degree_Fahrenheit": ("°F", False),
    "degree_Rankine": ("°R", False),
    "mmH2O": ("mmH<sub>2</sub>O", True),
    "cmH2O": ("cmH<sub>2</sub>O", True),
}


def format_number(
    value: float,
    lower_exp: int = -6,
    upper_exp: int = 21,
    precision: Optional[int] = None,
) -> str:
    """
    Format a float like a calculator would.

    Fixed notation is used when ``10**lower_exp <= |value| < 10**upper_exp``,
    exponential notation (``1.5e+25``) otherwise.

    Args:
        value: Number to format
        lower_exp: Smallest power of ten still written in fixed notation
        upper_exp: First power of ten written in exponential notation
        precision: Optional number of significant digits

    Returns:
        Formatted number
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    if precision:
        value = float(f"{value:.{precision}g}")

    number = Decimal(repr(value)).normalize()
    exp10 = number.adjusted()

    if lower_exp <= exp10 < upper_exp:
        return format(number, "f")

    sign = "-" if number < 0 else ""
    digits = "".join(str(digit) for digit in number.as_tuple().digits)
    mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
    return f"{sign}{mantissa}e{'+' if exp10 >= 0 else '-'}{abs(exp10)}"


def _round_half_away(number: float, digits: int) -> float:
    factor = 10.0 ** digits
    return math.copysign(math.floor(abs(number) * factor + 0.5) / factor, number)


class ResultFormatter:
    """Render EvaluationResult values as PlainText or MarkupFragment."""

    def __init__(self, unit_system: UnitSystem, settings: Optional[Settings] = None):
        self.unit_system = unit_system
        self.settings = settings or default_settings

    def format(self, result: EvaluationResult) -> RenderedValue:
        if isinstance(result, EvaluationError):
            raise ValueError(f"Cannot format a failed evaluation of '{result.expression}'")
        if isinstance(result, Scalar):
            return PlainText(self.format_scalar(result.value))
        if isinstance(result, UnitValue):
            return self.format_unit_value(result)
        if isinstance(result, ListValue):
            return self.format_list(result)
        raise TypeError(f"Unsupported result type: {type(result).__name__}")

    def format_scalar(self, value: float) -> str:
        return format_number(
            value,
            self.settings.scalar_lower_exp,
            self.settings.scalar_upper_exp,
            self.settings.precision,
        )

    def format_unit_value(self, value: UnitValue) -> RenderedValue:
        magnitude, terms = self._display_terms(value)
        if self._is_microliter(terms) and self.settings.microliter_precision_steps:
            magnitude = self._microliter_step(magnitude)

        number = format_number(
            magnitude,
            self.settings.unit_lower_exp,
            self.settings.unit_upper_exp,
            self.settings.precision,
        )
        unit, is_markup = self.format_terms(terms)
        text = f"{number} {unit}" if unit else number
        return MarkupFragment(text) if is_markup else PlainText(text)

    def format_list(self, value: ListValue) -> RenderedValue:
        rendered = [
            PlainText(item.text) if isinstance(item, TextValue) else self.format(item)
            for item in value.items
        ]
        escaped = [part.text if part.is_markup else html.escape(part.text, quote=False) for part in rendered]
        if not any(part.is_markup for part in rendered) and escaped == [part.text for part in rendered]:
            return PlainText(", ".join(escaped))
        # Element text such as "&lt;img&gt;" was decoded by the parser and must stay text
        return MarkupFragment(", ".join(escaped))

    # Units

    def format_terms(self, terms: tuple[UnitTerm, ...]) -> tuple[str, bool]:
        """
        Lay out unit terms as ``num num / den`` or ``num / (den den)``.

        Returns the text and whether it contains markup.
        """
        numerator = [term for term in terms if term.power > 0]
        denominator = [term for term in terms if term.power < 0]

        if not numerator:
            parts = [self.format_term(term, term.power) for term in denominator]
            return " ".join(text for text, _ in parts), any(markup for _, markup in parts)

        parts = [self.format_term(term, term.power) for term in numerator]
        text = " ".join(part for part, _ in parts)
        is_markup = any(markup for _, markup in parts)

        if denominator:
            below = [self.format_term(term, -term.power) for term in denominator]
            below_text = " ".join(part for part, _ in below)
            if len(below) > 1:
                below_text = f"({below_text})"
            text = f"{text} / {below_text}"
            is_markup = is_markup or any(markup for _, markup in below)

        return text, is_markup

    def format_term(self, term: UnitTerm, power: float) -> tuple[str, bool]:
        prefix = self.unit_system.prefix_symbol(term.prefix) if term.prefix else ""
        if prefix == "u":
            prefix = GREEK_MU

        power_unit = self.unit_system.power_unit(term.unit, power)
        if power_unit is not None and (not prefix or power_unit.prefixable):
            return prefix + power_unit.markup, True

        if term.unit in UNIT_NAME_REWRITES:
            name, is_markup = UNIT_NAME_REWRITES[term.unit]
        else:
            name, is_markup = self.unit_system.unit_symbol(term.unit), False

        text = prefix + name
        if power != 1:
            text += "^" + format_number(power)
        return text, is_markup

    # Display options

    def _display_terms(self, value: UnitValue) -> tuple[float, tuple[UnitTerm, ...]]:
        if not self.settings.auto_prefix or value.fixed_prefix or len(value.terms) != 1:
            return value.magnitude, value.terms
        term = value.terms[0]
        if term.unit not in SI_PREFIXED_UNITS or not float(term.power).is_integer():
            return value.magnitude, value.terms

        prefix = self._best_prefix(value.magnitude, term)
        if prefix is None or prefix.registry_name == term.prefix:
            return value.magnitude, value.terms
        logger.debug(f"Showing {value.quantity} with prefix '{prefix.registry_name}'")
        return (
            self._rescale(value.magnitude, term, prefix.registry_name),
            (UnitTerm(prefix=prefix.registry_name, unit=term.unit, power=term.power),),
        )

    def _best_prefix(self, magnitude: float, term: UnitTerm) -> Optional[Prefix]:
        """
        Pick the prefix that puts the magnitude closest to 10^1.2 (about 16).

        The current prefix is kept while the magnitude stays roughly between
        0.1 and 1000.
        """
        if self.unit_system.prefix_factor(term.prefix) is None:
            return None
        size = abs(magnitude)
        if size == 0 or math.isnan(size) or math.isinf(size):
            return None

        current = math.log10(size) - PREFIX_TARGET_EXP
        if PREFIX_KEEP_RANGE[0] < current < PREFIX_KEEP_RANGE[1]:
            return None

        best, best_diff = None, abs(current)
        for prefix in self.unit_system.scientific_prefixes:
            scaled = abs(self._rescale(magnitude, term, prefix.registry_name))
            if scaled == 0 or math.isinf(scaled):
                continue
            diff = abs(math.log10(scaled) - PREFIX_TARGET_EXP)
            shorter = best is not None and len(prefix.symbol) < len(best.symbol)
            if diff < best_diff or (diff == best_diff and shorter):
                best, best_diff = prefix, diff
        return best

    def _rescale(self, magnitude: float, term: UnitTerm, prefix_name: str) -> float:
        # Prefix factors are powers of ten, Decimal keeps 1e-4 m -> 100 um exact
        ratio = Decimal(repr(self.unit_system.prefix_factor(term.prefix))) / Decimal(
            repr(self.unit_system.prefix_factor(prefix_name))
        )
        return float(Decimal(repr(float(magnitude))) * ratio ** int(term.power))

    @staticmethod
    def _is_microliter(terms: tuple[UnitTerm, ...]) -> bool:
        return len(terms) == 1 and terms[0] == UnitTerm(prefix="micro", unit="liter", power=1)

    @staticmethod
    def _microliter_step(magnitude: float) -> float:
        size = abs(magnitude)
        if math.isnan(size) or math.isinf(size):
            return magnitude
        if size < 10:
            return _round_half_away(magnitude, 2)
        if size < 100:
            return _round_half_away(magnitude, 1)
        return _round_half_away(magnitude, 0)
