import logging
from enum import Enum, auto
from typing import List, NamedTuple

from minisheet.errors import ParseError


class TokenType(Enum):
    IDENTIFIER = auto()
    NUMBER = auto()
    OPERATOR = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    COLON = auto()


class Token(NamedTuple):
    type: TokenType
    value: str
    position: int


OPERATORS = "+-*/^"
DIGITS = "0123456789"

SINGLE_CHAR_TOKENS = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
}


class FormulaTokenizer:
    """Split formula text into cell-ref/identifier, number, operator,
    parenthesis, comma and colon tokens.

    Characters outside that set are dropped, the same way the arithmetic
    evaluator drops them.
    """

    def __init__(self, formula: str):
        self.formula = formula.strip()
        self.pos = 0
        self.length = len(self.formula)

    def tokenize(self) -> List[Token]:
        """Tokenize the formula and return list of tokens."""
        tokens = []
        while self.pos < self.length:
            char = self.formula[self.pos]

            if char.isspace():
                self.pos += 1
            elif char in DIGITS or char == ".":
                tokens.append(self._tokenize_number())
            elif char.isascii() and char.isalpha():
                tokens.append(self._tokenize_identifier())
            elif char in OPERATORS:
                tokens.append(Token(TokenType.OPERATOR, char, self.pos))
                self.pos += 1
            elif char in SINGLE_CHAR_TOKENS:
                tokens.append(Token(SINGLE_CHAR_TOKENS[char], char, self.pos))
                self.pos += 1
            else:
                logging.debug(
                    f"Dropping character {char!r} at position {self.pos} in {self.formula!r}"
                )
                self.pos += 1

        return tokens

    def _tokenize_identifier(self) -> Token:
        """Tokenize a function name or a cell reference: letters, then digits.

        `A1B2` yields two tokens, matching how references are scanned in
        plain arithmetic.
        """
        start = self.pos
        while (
            self.pos < self.length
            and self.formula[self.pos].isascii()
            and self.formula[self.pos].isalpha()
        ):
            self.pos += 1
        while self.pos < self.length and self.formula[self.pos] in DIGITS:
            self.pos += 1
        return Token(TokenType.IDENTIFIER, self.formula[start : self.pos], start)

    def _tokenize_number(self) -> Token:
        """Tokenize an integer or decimal number."""
        start = self.pos
        while self.pos < self.length and (
            self.formula[self.pos] in DIGITS or self.formula[self.pos] == "."
        ):
            self.pos += 1

        value = self.formula[start : self.pos]
        if value.count(".") > 1:
            raise ParseError(
                f"Invalid number format at position {start}: multiple decimal points"
            )
        if value == ".":
            raise ParseError(
                f"Invalid number format at position {start}: lone decimal point"
            )
        return Token(TokenType.NUMBER, value, start)
