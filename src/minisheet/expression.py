"""Arithmetic evaluation of fully-resolved formula text.

By the time text reaches this module every function call and cell
reference has been replaced by a number, so the grammar is just numbers,
`+ - * / ^` and parentheses. Evaluation goes tokens -> postfix (shunting
yard) -> value.
"""

import logging
import math
from typing import List

from minisheet.errors import DivisionByZeroError, EvaluationError, ParseError
from minisheet.tokenizer import DIGITS, Token, TokenType

PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2, "^": 3}
RIGHT_ASSOCIATIVE = {"^"}


class ArithmeticTokenizer:
    """Tokenize arithmetic text, rewriting unary minus as `(0 - operand)`.

    A `-` is unary at the start of the expression, after `(` and after
    another operator. Its operand is the next number or parenthesised group,
    so `3*-2` is `3*(0-2)` and `-2^2` is `(0-2)^2`. Any character that is not
    a digit, `.`, an operator or a parenthesis is dropped.
    """

    def __init__(self, expression: str):
        self.expression = expression
        self.pos = 0
        self.length = len(expression)

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        # Real parenthesis depth at which each open negation started
        pending_negations: List[int] = []
        depth = 0

        while self.pos < self.length:
            char = self.expression[self.pos]

            if char in DIGITS or char == ".":
                tokens.append(self._tokenize_number())
                self._close_negations(tokens, pending_negations, depth)
            elif char in PRECEDENCE:
                if char == "-" and self._is_unary(tokens):
                    pending_negations.append(depth)
                    tokens.append(Token(TokenType.LPAREN, "(", self.pos))
                    tokens.append(Token(TokenType.NUMBER, "0", self.pos))
                tokens.append(Token(TokenType.OPERATOR, char, self.pos))
                self.pos += 1
            elif char == "(":
                depth += 1
                tokens.append(Token(TokenType.LPAREN, char, self.pos))
                self.pos += 1
            elif char == ")":
                depth -= 1
                tokens.append(Token(TokenType.RPAREN, char, self.pos))
                self.pos += 1
                self._close_negations(tokens, pending_negations, depth)
            else:
                if not char.isspace():
                    logging.debug(
                        f"Dropping character {char!r} at position {self.pos} in {self.expression!r}"
                    )
                self.pos += 1

        return tokens

    @staticmethod
    def _is_unary(tokens: List[Token]) -> bool:
        return not tokens or tokens[-1].type in (TokenType.LPAREN, TokenType.OPERATOR)

    def _close_negations(
        self, tokens: List[Token], pending_negations: List[int], depth: int
    ) -> None:
        """An operand just completed at `depth`: close the negations waiting on it."""
        while pending_negations and pending_negations[-1] == depth:
            pending_negations.pop()
            tokens.append(Token(TokenType.RPAREN, ")", self.pos))

    def _tokenize_number(self) -> Token:
        start = self.pos
        while self.pos < self.length and (
            self.expression[self.pos] in DIGITS or self.expression[self.pos] == "."
        ):
            self.pos += 1
        value = self.expression[start : self.pos]
        if value == "." or value.count(".") > 1:
            raise ParseError(f"Invalid number {value!r} at position {start}")
        return Token(TokenType.NUMBER, value, start)


def to_rpn(tokens: List[Token]) -> List[Token]:
    """Convert infix tokens to postfix with the shunting-yard algorithm."""
    output: List[Token] = []
    operators: List[Token] = []

    for token in tokens:
        if token.type == TokenType.NUMBER:
            output.append(token)
        elif token.type == TokenType.OPERATOR:
            precedence = PRECEDENCE[token.value]
            while operators and operators[-1].type == TokenType.OPERATOR:
                top = PRECEDENCE[operators[-1].value]
                if token.value in RIGHT_ASSOCIATIVE:
                    should_pop = precedence < top
                else:
                    should_pop = precedence <= top
                if not should_pop:
                    break
                output.append(operators.pop())
            operators.append(token)
        elif token.type == TokenType.LPAREN:
            operators.append(token)
        elif token.type == TokenType.RPAREN:
            while operators and operators[-1].type != TokenType.LPAREN:
                output.append(operators.pop())
            if not operators:
                raise ParseError(
                    f"Mismatched parentheses: unexpected ')' at position {token.position}"
                )
            operators.pop()  # discard '('
        else:
            raise ParseError(f"Unexpected token in arithmetic: {token.value!r}")

    while operators:
        token = operators.pop()
        if token.type == TokenType.LPAREN:
            raise ParseError(
                f"Mismatched parentheses: unclosed '(' at position {token.position}"
            )
        output.append(token)

    return output


def apply_operator(operator: str, left: float, right: float) -> float:
    match operator:
        case "+":
            result = left + right
        case "-":
            result = left - right
        case "*":
            result = left * right
        case "/":
            if right == 0:
                raise DivisionByZeroError(f"Division by zero: {left} / {right}")
            result = left / right
        case "^":
            try:
                # math.pow fails loudly where ** would return a complex number
                result = math.pow(left, right)
            except (ValueError, OverflowError) as e:
                raise EvaluationError(f"Cannot compute {left} ^ {right}: {e}") from e
        case _:
            raise ParseError(f"Unknown operator: {operator}")

    if not math.isfinite(result):
        raise EvaluationError(f"Non-finite result for {left} {operator} {right}")
    return result


def evaluate_rpn(rpn: List[Token]) -> float:
    stack: List[float] = []
    for token in rpn:
        if token.type == TokenType.NUMBER:
            stack.append(float(token.value))
            continue
        if len(stack) < 2:
            raise ParseError(
                f"Operator {token.value!r} at position {token.position} is missing an operand"
            )
        right = stack.pop()
        left = stack.pop()
        stack.append(apply_operator(token.value, left, right))

    if len(stack) != 1:
        raise ParseError(
            f"Malformed expression: {len(stack)} values left after evaluation"
        )
    return stack[0]


def evaluate_expression(expression: str) -> float:
    """Evaluate a purely numeric arithmetic string."""
    tokens = ArithmeticTokenizer(expression).tokenize()
    if not tokens:
        raise ParseError(f"Empty expression: {expression!r}")
    return evaluate_rpn(to_rpn(tokens))
