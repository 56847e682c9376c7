"""Tests for expression evaluation and formatting."""

import math

import pytest

from elabmath.expressions import (
    EvaluationError,
    ExpressionEvaluator,
    ExpressionSyntaxError,
    ListValue,
    MarkupFragment,
    Parser,
    PlainText,
    Scalar,
    TextValue,
    UnitValue,
    format_number,
    parse_expression,
    split_top_level,
)
from elabmath.expressions.lexer import Lexer

from conftest import make_settings


def render(evaluator: ExpressionEvaluator, expression: str, text_items=()):
    rendered = evaluator.render(expression, text_items)
    assert rendered is not None, f"'{expression}' did not evaluate"
    return rendered


class TestLexer:
    """Test tokenization."""

    def test_tokenize_expression(self, unit_system):
        """Test token types for a unit expression."""
        tokens = Lexer("2.5 µL * 3", unit_system).tokenize()
        assert [(token.type, token.value) for token in tokens] == [
            ("NUMBER", "2.5"),
            ("IDENT", "µL"),
            ("OP", "*"),
            ("NUMBER", "3"),
            ("END", ""),
        ]

    def test_digits_inside_names(self, unit_system):
        """Test that m2 and mmH2O are single identifiers."""
        tokens = Lexer("m2 mmH2O", unit_system).tokenize()
        assert [token.value for token in tokens[:-1]] == ["m2", "mmH2O"]

    def test_power_operators(self, unit_system):
        """Test that ** is one operator."""
        tokens = Lexer("2**3^4", unit_system).tokenize()
        assert [token.value for token in tokens if token.type == "OP"] == ["**", "^"]

    def test_unexpected_character(self, unit_system):
        """Test that unknown characters are syntax errors."""
        with pytest.raises(ExpressionSyntaxError):
            Lexer("2 $ 3", unit_system).tokenize()

    def test_greek_rejected_without_extension(self, plain_unit_system):
        """Test that θ cannot be tokenized without the identifier extension."""
        with pytest.raises(ExpressionSyntaxError):
            Lexer("θ", plain_unit_system).tokenize()


class TestArithmetic:
    """Test plain number expressions."""

    @pytest.mark.parametrize(
        "expression,expected",
        [
            ("1 + 1", "2"),
            ("2 + 3 * 4", "14"),
            ("(2 + 3) * 4", "20"),
            ("10 / 4", "2.5"),
            ("2 ^ 3 ^ 2", "512"),
            ("2 ** 10", "1024"),
            ("-2 ^ 2", "-4"),
            ("2 ^ -1", "0.5"),
            ("5!", "120"),
            ("7 - -3", "10"),
            ("0.1 + 0.2", "0.30000000000000004"),
            ("sqrt(16)", "4"),
            ("max(3, 9, 4)", "9"),
            ("mean(1, 2, 3, 4)", "2.5"),
            ("round(2.5)", "3"),
            ("round(-2.5)", "-3"),
            ("round(3.14159, 2)", "3.14"),
            ("log10(1000)", "3"),
            ("mod(10, 3)", "1"),
            ("1 / 0", "Infinity"),
            ("-1 / 0", "-Infinity"),
            ("0 / 0", "NaN"),
        ],
    )
    def test_scalar_results(self, evaluator, expression, expected):
        """Test scalar evaluation and formatting."""
        assert render(evaluator, expression) == PlainText(expected)

    def test_implicit_multiplication(self, evaluator):
        """Test that a number next to a constant multiplies it."""
        result = evaluator.evaluate("2 pi")
        assert isinstance(result, Scalar)
        assert result.value == pytest.approx(2 * math.pi)

    def test_trigonometry_in_degrees(self, evaluator):
        """Test that angle units are converted to radians for trig functions."""
        result = evaluator.evaluate("sin(90 deg)")
        assert result.value == pytest.approx(1.0)

    def test_large_and_small_numbers(self, evaluator):
        """Test exponential notation outside the fixed range."""
        assert render(evaluator, "1e21").text == "1e+21"
        assert render(evaluator, "123456789").text == "123456789"
        assert render(evaluator, "0.000001").text == "0.000001"
        assert render(evaluator, "0.0000001").text == "1e-7"


class TestEvaluationErrors:
    """Test that bad expressions produce EvaluationError."""

    @pytest.mark.parametrize(
        "expression",
        [
            "2 +* 3",
            "",
            "(1 + 2",
            "1 + 2)",
            "flurble + 1",
            "nosuchfunction(2)",
            "1 m + 1 s",
            "5 km to s",
            "sqrt(-4)",
            "(-8) ^ (1/3)",
            "1 m to 2 m",
        ],
    )
    def test_invalid_expressions(self, evaluator, expression):
        """Test expressions that must not evaluate."""
        result = evaluator.evaluate(expression)
        assert isinstance(result, EvaluationError)
        assert result.expression == expression
        assert evaluator.render(expression) is None

    def test_failure_is_logged(self, evaluator, caplog):
        """Test that evaluation failures are logged with the expression."""
        with caplog.at_level("WARNING"):
            evaluator.evaluate("2 +* 3")
        assert "2 +* 3" in caplog.text

    def test_greek_without_extension(self, plain_unit_system, test_settings):
        """Test that θ and Ω fail without the identifier extension and work with it."""
        plain = ExpressionEvaluator(unit_system=plain_unit_system, settings=test_settings)
        assert isinstance(plain.evaluate("θ"), EvaluationError)
        assert isinstance(plain.evaluate("2 Ω"), EvaluationError)

    def test_greek_with_extension(self, evaluator):
        """Test that θ and Ω parse as units."""
        assert render(evaluator, "θ").text == "1 rad"
        assert render(evaluator, "2 kΩ").text == "2 kΩ"


class TestUnitResults:
    """Test unit-typed results and their display."""

    def test_celsius(self, evaluator):
        """Test that degC displays as °C."""
        result = evaluator.evaluate("5 degC")
        assert isinstance(result, UnitValue)
        assert result.magnitude == 5
        assert evaluator.formatter.format(result) == PlainText("5 °C")

    def test_degree_symbols(self, evaluator):
        """Test the other degree rewrites."""
        assert render(evaluator, "5 °C").text == "5 °C"
        assert render(evaluator, "32 degF").text == "32 °F"
        assert render(evaluator, "90 deg").text == "90 °"

    def test_square_meter(self, evaluator):
        """Test that m^2 and the m2 alias both render as superscript markup."""
        assert render(evaluator, "1 m^2") == MarkupFragment("1 m<sup>2</sup>")
        assert render(evaluator, "1 m2") == MarkupFragment("1 m<sup>2</sup>")
        assert render(evaluator, "1 m²") == MarkupFragment("1 m<sup>2</sup>")

    def test_area_and_volume(self, evaluator):
        """Test imperial area and volume rewrites."""
        assert render(evaluator, "3 sqft") == MarkupFragment("3 ft<sup>2</sup>")
        assert render(evaluator, "2 cuyd") == MarkupFragment("2 yd<sup>3</sup>")
        assert render(evaluator, "4 km2") == MarkupFragment("4 km<sup>2</sup>")

    def test_water_column(self, evaluator):
        """Test subscript rendering of mmH2O."""
        assert render(evaluator, "10 mmH2O") == MarkupFragment("10 mmH<sub>2</sub>O")

    def test_micro_prefix(self, evaluator):
        """Test that the micro prefix renders as Greek mu."""
        assert render(evaluator, "2 uL") == PlainText("2 μL")

    def test_micro_spellings_are_equal(self, evaluator):
        """Test that uL and µL evaluate to the same value."""
        ascii_result = evaluator.evaluate("2 uL")
        micro_result = evaluator.evaluate("2 µL")
        assert ascii_result.magnitude == micro_result.magnitude
        assert ascii_result.terms == micro_result.terms
        assert render(evaluator, "2 µL") == render(evaluator, "2 uL")

    def test_compound_units(self, evaluator):
        """Test numerator and denominator layout."""
        assert render(evaluator, "10 m / 2 s").text == "5 m / s"
        assert render(evaluator, "3 kg m").text == "3 kg m"
        assert render(evaluator, "1 m / (2 s * 1 kg)").text == "0.5 m / (s kg)"
        assert render(evaluator, "1 / 2 s").text == "0.5 s^-1"

    def test_unit_cancellation(self, evaluator):
        """Test that equal units cancel to a plain number."""
        assert evaluator.evaluate("20 kg / 4 kg") == Scalar(5.0)
        assert render(evaluator, "1 m / 1 km").text == "0.001"

    def test_prefixed_ratio_is_converted(self, evaluator):
        """Test that ratios of prefixed units of one dimension are converted, not just unit-stripped."""
        assert evaluator.evaluate("5 mL / 1 L") == Scalar(pytest.approx(0.005))
        assert render(evaluator, "5 mL / 1 L").text == "0.005"
        assert render(evaluator, "1 km / 1 m").text == "1000"

    def test_conversion(self, evaluator):
        """Test the to operator."""
        assert render(evaluator, "5 km to m").text == "5000 m"
        assert render(evaluator, "1 mol / 1 s to kat").text == "1 kat"
        assert evaluator.evaluate("180 deg to rad").magnitude == pytest.approx(math.pi)

        result = evaluator.evaluate("100 degC to degF")
        assert result.magnitude == pytest.approx(212)
        assert evaluator.formatter.format(result).text.endswith(" °F")

    def test_lab_units(self, evaluator):
        """Test molarity and prefixed custom units."""
        assert render(evaluator, "5 mM").text == "5 mM"
        assert render(evaluator, "2 mkat").text == "2 mkat"
        assert render(evaluator, "3 d").text == "3 d"

    def test_unit_magnitude_notation(self, evaluator):
        """Test that unit magnitudes switch to exponential notation earlier."""
        assert render(evaluator, "123456 ft").text == "1.23456e+5 ft"
        assert render(evaluator, "0.0001 ft").text == "1e-4 ft"
        assert render(evaluator, "0.001 ft").text == "0.001 ft"

    def test_rounding_keeps_units(self, evaluator):
        """Test that round() keeps the unit."""
        assert render(evaluator, "round(2.345 g, 1)").text == "2.3 g"


class TestLists:
    """Test comma-separated lists."""

    def test_split_top_level(self):
        """Test that commas in parentheses do not split."""
        assert split_top_level("1, max(2, 3), 4") == ["1", " max(2, 3)", " 4"]

    def test_function_arguments_are_not_a_list(self, evaluator):
        """Test that commas inside a call are arguments."""
        assert evaluator.evaluate("max(1, 2)") == Scalar(2.0)

    def test_list_of_numbers(self, evaluator):
        """Test that each item is evaluated."""
        result = evaluator.evaluate("1, 2 + 3, 2 uL")
        assert isinstance(result, ListValue)
        assert render(evaluator, "1, 2 + 3, 2 uL") == PlainText("1, 5, 2 μL")

    def test_list_of_words(self, evaluator):
        """Test that names and unparseable items pulled in by a selector are kept as text."""
        items = ("a", "b", "c")
        result = evaluator.evaluate("a, b, c", items)
        assert result == ListValue(items=(TextValue("a"), TextValue("b"), TextValue("c")))
        assert render(evaluator, "a, b, c", items) == PlainText("a, b, c")

    def test_written_items_must_evaluate(self, evaluator):
        """Test that a broken item typed in the placeholder fails the whole list."""
        result = evaluator.evaluate("2 +* 3, 4")
        assert isinstance(result, EvaluationError)
        assert result.expression == "2 +* 3, 4"
        assert evaluator.render("2 +* 3, 4") is None
        assert evaluator.render("1, flurble", ("1",)) is None

    def test_written_names_are_evaluated(self, evaluator):
        """Test that a unit name typed in the placeholder is a unit, not text."""
        assert render(evaluator, "2, m").text == "2, 1 m"
        assert render(evaluator, "2, m", ("m",)).text == "2, m"

    def test_list_with_markup(self, evaluator):
        """Test that text items are escaped when another item is markup."""
        rendered = render(evaluator, "1 m2, x < y", ("x < y",))
        assert rendered == MarkupFragment("1 m<sup>2</sup>, x &lt; y")

    def test_text_items_are_escaped(self, evaluator):
        """Test that element text that looks like a tag never comes back as markup."""
        items = ("<img src=x onerror=alert(1)>", "b")
        rendered = render(evaluator, ", ".join(items), items)
        assert rendered == MarkupFragment("&lt;img src=x onerror=alert(1)&gt;, b")


class TestFormatNumber:
    """Test number formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0.0, "0"),
            (-0.0, "0"),
            (5.0, "5"),
            (-2.5, "-2.5"),
            (1e21, "1e+21"),
            (1.5e25, "1.5e+25"),
            (1e20, "100000000000000000000"),
            (-1e-7, "-1e-7"),
            (math.nan, "NaN"),
            (math.inf, "Infinity"),
            (-math.inf, "-Infinity"),
        ],
    )
    def test_scalar_bounds(self, value, expected):
        """Test the default fixed/exponential bounds."""
        assert format_number(value) == expected

    def test_precision(self):
        """Test significant digit rounding."""
        assert format_number(1 / 3, precision=3) == "0.333"
        assert format_number(123456.0, precision=2) == "120000"


class TestFormatterOptions:
    """Test the optional display settings."""

    def test_precision_setting(self, unit_system):
        """Test that the precision setting applies to all results."""
        evaluator = ExpressionEvaluator(unit_system=unit_system, settings=make_settings(precision=4))
        assert render(evaluator, "1 / 3").text == "0.3333"
        assert render(evaluator, "2 m / 3").text == "0.6667 m"

    def test_microliter_steps(self, unit_system):
        """Test magnitude-dependent rounding of microliter volumes."""
        evaluator = ExpressionEvaluator(
            unit_system=unit_system,
            settings=make_settings(microliter_precision_steps=True),
        )
        assert render(evaluator, "1.23456 uL").text == "1.23 μL"
        assert render(evaluator, "12.345 uL").text == "12.3 μL"
        assert render(evaluator, "123.45 uL").text == "123 μL"
        assert render(evaluator, "1.23456 mL").text == "1.23456 mL"

    def test_microliter_steps_off_by_default(self, evaluator):
        """Test that microliter values are not rounded by default."""
        assert render(evaluator, "1.23456 uL").text == "1.23456 μL"

    def test_auto_prefix(self, evaluator):
        """Test that single SI units get the prefix that keeps the number readable."""
        assert render(evaluator, "1500 m").text == "1.5 km"
        assert render(evaluator, "0.0001 m").text == "100 μm"
        assert render(evaluator, "1000000 mm").text == "1 km"
        assert render(evaluator, "0.002 L").text == "2 mL"
        assert render(evaluator, "0.5 g").text == "0.5 g"

    def test_auto_prefix_keeps_readable_values(self, evaluator):
        """Test that magnitudes between 0.1 and 1000 keep the prefix they were written with."""
        assert render(evaluator, "250 mL").text == "250 mL"
        assert render(evaluator, "1000 g").text == "1000 g"
        assert render(evaluator, "12 cm").text == "12 cm"

    def test_auto_prefix_skips_other_units(self, evaluator):
        """Test that offset, non-SI and compound units keep their unit."""
        assert render(evaluator, "5 degC").text == "5 °C"
        assert render(evaluator, "5000 ft").text == "5000 ft"
        assert render(evaluator, "3000 m / 2 s").text == "1500 m / s"

    def test_conversion_target_is_kept(self, evaluator):
        """Test that a `to` result stays in the requested unit."""
        assert render(evaluator, "1 km to m").text == "1000 m"
        assert render(evaluator, "2 m to mm").text == "2000 mm"
        assert render(evaluator, "(2 km to m) * 2").text == "4 km"

    def test_auto_prefix_off(self, unit_system):
        """Test that prefixes are left alone when the setting is off."""
        evaluator = ExpressionEvaluator(unit_system=unit_system, settings=make_settings(auto_prefix=False))
        assert render(evaluator, "1500 m").text == "1500 m"


class TestParser:
    """Test the parser directly."""

    def test_parse_returns_quantity_for_units(self, unit_system):
        """Test that unit literals build quantities."""
        value = parse_expression("5 degC", unit_system)
        assert unit_system.is_quantity(value)
        assert value.magnitude == 5

    def test_parse_returns_float(self, unit_system):
        """Test that plain arithmetic returns floats."""
        assert parse_expression("6 * 7", unit_system) == 42.0

    def test_conversion_flag(self, unit_system):
        """Test that the parser records a `to` applied to the whole expression."""
        parser = Parser("5 km to m", unit_system)
        parser.parse()
        assert parser.converted is True

        nested = Parser("(5 km to m) * 2", unit_system)
        nested.parse()
        assert nested.converted is False

    def test_literal_exponent(self, unit_system):
        """Test that a unit exponent binds to the unit, not the number."""
        value = parse_expression("2 m^2", unit_system)
        assert value.magnitude == 2
        assert value.units == unit_system.lookup_unit("m") ** 2
