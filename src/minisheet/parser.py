from typing import List, Optional

from minisheet.errors import ParseError
from minisheet.tokenizer import FormulaTokenizer, Token, TokenType
from minisheet.ast import (
    ASTNode,
    CellRange,
    CellReference,
    Expression,
    FunctionCall,
    Group,
    Number,
    Operator,
)
from minisheet.utils import parse_address


def parse_formula(formula: str) -> Expression:
    """Helper function to parse a formula string (with or without `=`)."""
    formula = formula.strip()
    if formula.startswith("="):
        formula = formula[1:]
    tokens = FormulaTokenizer(formula).tokenize()
    return FormulaParser(tokens).parse()


def parse_arguments(args_text: str) -> tuple[Expression, ...]:
    """Parse the text between a function's parentheses into its arguments."""
    tokens = FormulaTokenizer(args_text).tokenize()
    return FormulaParser(tokens).parse_argument_list()


class FormulaParser:
    """Recursive-descent parser that recovers formula structure.

    Function calls, references and ranges become nodes; arithmetic is kept
    as a flat run of numbers, operators and parenthesised groups, since the
    shunting-yard evaluator owns precedence and associativity.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.current = 0

    def parse(self) -> Expression:
        """Parse tokens into a top-level expression."""
        self.current = 0
        expr = self.parse_expression()
        if (token := self.peek()) is not None:
            raise ParseError(
                f"Unexpected token: {token.type.name} at position {token.position}"
            )
        return expr

    def parse_argument_list(self) -> tuple[Expression, ...]:
        """Parse comma-separated arguments; commas inside nested calls or
        parentheses belong to the nested construct."""
        self.current = 0
        if not self.tokens:
            return ()
        args = [self.parse_expression()]
        while self.read_if_match(TokenType.COMMA):
            args.append(self.parse_expression())
        if (token := self.peek()) is not None:
            raise ParseError(
                f"Unexpected token: {token.type.name} at position {token.position}"
            )
        return tuple(args)

    def peek(self) -> Optional[Token]:
        """Look at the current token without consuming it."""
        if self.current >= len(self.tokens):
            return None
        return self.tokens[self.current]

    def read(self) -> Token:
        """Consume and return the current token."""
        if self.current >= len(self.tokens):
            raise ParseError("Unexpected end of formula")
        tok = self.tokens[self.current]
        self.current += 1
        return tok

    def read_if_match(self, *types: TokenType) -> Optional[Token]:
        """Consume and return current token if it matches any of the given types."""
        token = self.peek()
        if token is not None and token.type in types:
            self.current += 1
            return token
        return None

    def parse_expression(self) -> Expression:
        """Parse items up to a closing parenthesis, a comma or the end."""
        items: list[ASTNode] = []
        while (token := self.peek()) is not None and token.type not in (
            TokenType.RPAREN,
            TokenType.COMMA,
        ):
            items.append(self.parse_item())
        return Expression(items=tuple(items))

    def parse_item(self) -> ASTNode:
        token = self.read()

        if token.type == TokenType.NUMBER:
            return Number(token.value)

        elif token.type == TokenType.OPERATOR:
            return Operator(token.value)

        elif token.type == TokenType.LPAREN:
            inner = self.parse_expression()
            if not self.read_if_match(TokenType.RPAREN):
                raise ParseError("Expected closing parenthesis ')'")
            return Group(inner)

        elif token.type == TokenType.IDENTIFIER:
            return self.parse_identifier(token)

        raise ParseError(
            f"Unexpected token: {token.type.name} at position {token.position}"
        )

    def parse_identifier(self, token: Token) -> ASTNode:
        """Parse a function call, a cell reference or a range."""
        next_token = self.peek()

        # Function names are letters only, so `A1(2)` stays a reference
        # followed by a group
        if (
            next_token
            and next_token.type == TokenType.LPAREN
            and token.value.isalpha()
        ):
            self.read()  # consume '('
            return self.parse_function_call(token.value.upper())

        start_ref = self._cell_reference(token)

        if next_token and next_token.type == TokenType.COLON:
            self.read()  # consume ':'
            end_token = self.read_if_match(TokenType.IDENTIFIER)
            if not end_token:
                curr = self.peek()
                raise ParseError(
                    f"Expected cell reference after ':', got "
                    f"{curr.type.name if curr else 'end of formula'}"
                )
            return CellRange(start=start_ref, end=self._cell_reference(end_token))

        return start_ref

    def parse_function_call(self, name: str) -> FunctionCall:
        """Parse a function call with its arguments."""
        args = []

        # Handle empty argument list
        if self.read_if_match(TokenType.RPAREN):
            return FunctionCall(name=name, arguments=())

        while True:
            args.append(self.parse_expression())

            next_tok = self.peek()
            if not next_tok:
                raise ParseError(f"Unterminated argument list for {name}")

            if next_tok.type == TokenType.RPAREN:
                self.read()  # consume ')'
                break

            # parse_expression only stops on ')' or ','
            self.read()  # consume ','

        return FunctionCall(name=name, arguments=tuple(args))

    def _cell_reference(self, token: Token) -> CellReference:
        ref = parse_address(token.value)
        if ref is None:
            raise ParseError(
                f"Invalid cell reference: {token.value} at position {token.position}"
            )
        return ref
