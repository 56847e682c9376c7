"""
Recursive-descent parser that evaluates expressions while parsing.

Precedence, lowest first::

    conversion      additive ('to' additive)?
    additive        multiplicative (('+' | '-') multiplicative)*
    multiplicative  implicit (('*' | '/' | '·') implicit)*
    implicit        unary (power)*          e.g. "2 pi", "3 kg m"
    unary           ('-' | '+') unary | power
    power           postfix (('^' | '**') unary)?
    postfix         primary '!'?
    primary         NUMBER unit? | IDENT '(' args ')' | IDENT | '(' conversion ')'

A number directly followed by a unit name is a unit literal, so ``5 degC``
builds an offset quantity instead of multiplying by one.
"""

from typing import Optional

from ..units.system import UnitSystem
from . import functions
from .functions import Value
from .lexer import Lexer, Token
from .models import ExpressionSyntaxError, UnknownIdentifierError

CONVERSION_KEYWORD = "to"


class Parser:
    """Evaluating parser for a single (comma-free at top level) expression."""

    def __init__(self, text: str, unit_system: UnitSystem):
        self.text = text
        self.unit_system = unit_system
        self.tokens = Lexer(text, unit_system).tokenize()
        self.pos = 0
        # Whether the outermost expression ended in a `to` conversion
        self.converted = False

    def parse(self) -> Value:
        if self.current().type == "END":
            raise ExpressionSyntaxError("Empty expression")
        value = self.parse_conversion()
        if self.current().type != "END":
            token = self.current()
            raise ExpressionSyntaxError(f"Unexpected '{token.value}' at position {token.pos}")
        return value

    # Token helpers

    def current(self) -> Token:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != "END":
            self.pos += 1
        return token

    def expect(self, token_type: str) -> Token:
        token = self.current()
        if token.type != token_type:
            shown = token.value or "end of expression"
            raise ExpressionSyntaxError(f"Expected {token_type}, got '{shown}' at position {token.pos}")
        return self.advance()

    def at_operator(self, *operators: str) -> bool:
        token = self.current()
        return token.type == "OP" and token.value in operators

    def at_keyword(self) -> bool:
        token = self.current()
        return token.type == "IDENT" and token.value == CONVERSION_KEYWORD

    # Grammar

    def parse_conversion(self) -> Value:
        value = self.parse_additive()
        converted = False
        while self.at_keyword():
            self.advance()
            target = self.parse_additive()
            value = functions.convert(value, target)
            converted = True
        # Nested calls finish first, so the outermost call sets the flag last
        self.converted = converted
        return value

    def parse_additive(self) -> Value:
        left = self.parse_multiplicative()
        while self.at_operator("+", "-"):
            op = self.advance().value
            right = self.parse_multiplicative()
            left = functions.add(left, right) if op == "+" else functions.subtract(left, right)
        return left

    def parse_multiplicative(self) -> Value:
        left = self.parse_implicit()
        while self.at_operator("*", "/", "·"):
            op = self.advance().value
            right = self.parse_implicit()
            left = functions.divide(left, right) if op == "/" else functions.multiply(left, right)
        return left

    def parse_implicit(self) -> Value:
        left = self.parse_unary()
        while self._starts_implicit_operand():
            right = self.parse_power()
            left = functions.multiply(left, right)
        return left

    def _starts_implicit_operand(self) -> bool:
        token = self.current()
        if token.type == "LPAREN":
            return True
        return token.type == "IDENT" and token.value != CONVERSION_KEYWORD

    def parse_unary(self) -> Value:
        if self.at_operator("-"):
            self.advance()
            return functions.negate(self.parse_unary())
        if self.at_operator("+"):
            self.advance()
            return self.parse_unary()
        return self.parse_power()

    def parse_power(self) -> Value:
        base = self.parse_postfix()
        if self.at_operator("^", "**"):
            self.advance()
            exponent = self.parse_unary()
            return functions.power(base, exponent)
        return base

    def parse_postfix(self) -> Value:
        value = self.parse_primary()
        while self.at_operator("!"):
            self.advance()
            value = functions.factorial(value)
        return value

    def parse_primary(self) -> Value:
        token = self.current()

        if token.type == "NUMBER":
            self.advance()
            number = float(token.value)
            unit = self._parse_unit_literal()
            if unit is not None:
                return self.unit_system.quantity(number, unit)
            return number

        if token.type == "IDENT":
            self.advance()
            if self.current().type == "LPAREN":
                return self._parse_call(token)
            return self._resolve_name(token.value)

        if token.type == "LPAREN":
            self.advance()
            value = self.parse_conversion()
            self.expect("RPAREN")
            return value

        shown = token.value or "end of expression"
        raise ExpressionSyntaxError(f"Unexpected '{shown}' at position {token.pos}")

    # Names

    def _parse_unit_literal(self):
        """Read ``unit`` or ``unit^n`` right after a number, if present."""
        token = self.current()
        if token.type != "IDENT" or token.value == CONVERSION_KEYWORD:
            return None
        if token.value in functions.CONSTANTS or self.peek().type == "LPAREN":
            return None
        unit = self.unit_system.lookup_unit(token.value)
        if unit is None:
            return None
        self.advance()

        exponent = self._parse_literal_exponent()
        if exponent is not None:
            unit = unit ** exponent
        return unit

    def _parse_literal_exponent(self) -> Optional[float]:
        if not self.at_operator("^", "**"):
            return None
        negative = self.peek().type == "OP" and self.peek().value == "-"
        number = self.peek(2) if negative else self.peek()
        if number.type != "NUMBER":
            return None

        self.advance()
        if negative:
            self.advance()
        exponent = float(self.advance().value)
        if negative:
            exponent = -exponent
        return int(exponent) if exponent.is_integer() else exponent

    def _parse_call(self, name: Token) -> Value:
        if name.value not in functions.FUNCTIONS:
            raise UnknownIdentifierError(name.value)
        self.expect("LPAREN")
        args = []
        if self.current().type != "RPAREN":
            args.append(self.parse_conversion())
            while self.current().type == "COMMA":
                self.advance()
                args.append(self.parse_conversion())
        self.expect("RPAREN")
        return functions.call_function(name.value, args)

    def _resolve_name(self, name: str) -> Value:
        if name in functions.CONSTANTS:
            return functions.CONSTANTS[name]
        unit = self.unit_system.lookup_unit(name)
        if unit is None:
            raise UnknownIdentifierError(name)
        return self.unit_system.quantity(1.0, unit)


def parse_expression(text: str, unit_system: UnitSystem) -> Value:
    """Parse and evaluate one expression."""
    return Parser(text, unit_system).parse()
