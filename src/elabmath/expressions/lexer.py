"""Tokenizer for math expressions."""

import re
from dataclasses import dataclass

from ..units.system import UnitSystem
from .models import ExpressionSyntaxError

NUMBER_PATTERN = re.compile(r"(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Longest operators first
OPERATORS = ("**", "+", "-", "*", "/", "^", "!", "·")

SINGLE_CHAR_TOKENS = {
    "(": "LPAREN",
    ")": "RPAREN",
    ",": "COMMA",
}


@dataclass
class Token:
    """Token from lexer"""

    type: str  # NUMBER, IDENT, OP, LPAREN, RPAREN, COMMA, END
    value: str
    pos: int = 0


class Lexer:
    """Split an expression into tokens, using the unit system's identifier rules."""

    def __init__(self, text: str, unit_system: UnitSystem):
        self.text = text
        self.unit_system = unit_system
        self.pos = 0

    def tokenize(self) -> list[Token]:
        tokens = []
        text = self.text

        while self.pos < len(text):
            char = text[self.pos]

            if char.isspace():
                self.pos += 1
                continue

            number = NUMBER_PATTERN.match(text, self.pos)
            if number:
                tokens.append(Token("NUMBER", number.group(0), self.pos))
                self.pos = number.end()
                continue

            if self.unit_system.is_identifier_start(char):
                start = self.pos
                self.pos += 1
                while self.pos < len(text) and self.unit_system.is_identifier_part(text[self.pos]):
                    self.pos += 1
                tokens.append(Token("IDENT", text[start:self.pos], start))
                continue

            if char in SINGLE_CHAR_TOKENS:
                tokens.append(Token(SINGLE_CHAR_TOKENS[char], char, self.pos))
                self.pos += 1
                continue

            operator = next((op for op in OPERATORS if text.startswith(op, self.pos)), None)
            if operator:
                tokens.append(Token("OP", operator, self.pos))
                self.pos += len(operator)
                continue

            raise ExpressionSyntaxError(f"Unexpected character '{char}' at position {self.pos}")

        tokens.append(Token("END", "", self.pos))
        return tokens
