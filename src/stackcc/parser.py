"""
stackcc Recursive Descent Parser
================================

This module implements a recursive descent parser. It takes the token list
from the lexer and builds a Function: the AST of the body, the local
variables it references, and the frame size they need.

Grammar (EBNF)
--------------
program    ::= '{' block_stmt EOF
             | stmt* EOF
block_stmt ::= stmt* '}'
stmt       ::= 'return' expr ';'
             | '{' block_stmt
             | 'if' '(' expr ')' stmt ('else' stmt)?
             | 'for' '(' expr_stmt expr? ';' expr? ')' stmt
             | 'while' '(' expr ')' stmt
             | expr_stmt
expr_stmt  ::= expr? ';'

Expression Precedence (lowest to highest)
-----------------------------------------
1. assignment   =        (right-associative)
2. equality     == !=
3. relational   < <= > >=
4. additive     + -
5. multiplicative * /
6. unary        + -
7. primary      '(' expr ')', IDENTIFIER, NUMBER

A program that does not open with '{' is an implicit body: its statements
run until end of input, as in "a=3; b=a+2; a+b;".

'>' and '>=' produce LESS and LESS_EQ nodes with their operands swapped.
With legacy_relational=True the right operand of '>' and '>=' is parsed at
the equality level instead of the additive level, which is how earlier
releases of this compiler behaved.

Parentheses, unary operators, chained assignments and nested statements
count toward MAX_NESTING_DEPTH (stackcc.limits); deeper programs raise
NestingTooDeepError. Operator chains are parsed iteratively and have no
length limit.

Example Usage
-------------
>>> from stackcc.parser import parse_source
>>> function = parse_source("{ a = 1; return a + 2; }")
>>> [v.name for v in function.locals], function.stack_size
(['a'], 16)
"""

import logging
from typing import Callable, TypeVar

from stackcc.ast import (
    Function,
    Statement,
    Expression,
    BlockStatement,
    ExpressionStatement,
    ReturnStatement,
    IfStatement,
    ForStatement,
    BinaryExpression,
    BinaryOperator,
    NegateExpression,
    AssignmentExpression,
    VariableExpression,
    NumberLiteral,
)
from stackcc.errors import (
    UnexpectedTokenError,
    MissingTokenError,
    InvalidLValueError,
    NestingTooDeepError,
    source_line_at,
)
from stackcc.lexer import Token, TokenKind, tokenize
from stackcc.limits import MAX_NESTING_DEPTH, recursion_headroom
from stackcc.symbols import SymbolTable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Parser:
    """
    Recursive descent parser for stackcc.

    The grammar needs no backtracking: every decision is made on the
    current token, and each token is consumed exactly once.

    Attributes:
        tokens: Token list ending with EOF
        legacy_relational: Parse the right operand of '>' and '>=' at the
            equality level
    """

    def __init__(self, tokens: list[Token], legacy_relational: bool = False):
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            raise ValueError("token list must end with an EOF token")
        self.tokens = tokens
        self.legacy_relational = legacy_relational
        self._source = tokens[-1].source

        self._pos = 0
        self._depth = 0
        self._symbols = SymbolTable()

    def parse(self) -> Function:
        """
        Parse the token list into a Function.

        Returns:
            Function with body, locals and frame size

        Raises:
            ParseError: If the tokens do not match the grammar
        """
        self._pos = 0
        self._depth = 0
        self._symbols = SymbolTable()

        with recursion_headroom():
            try:
                body = self._parse_program()
            except RecursionError:
                # Only reachable if the interpreter's stack is smaller than
                # recursion_headroom() assumes
                raise self._nesting_error() from None

        variables, stack_size = self._symbols.finalize()
        logger.debug(
            "Parsed %d statements, %d locals, stack size %d",
            len(body.statements), len(variables), stack_size,
        )
        return Function(body=body, locals=variables, stack_size=stack_size)

    def _parse_program(self) -> BlockStatement:
        """Parse a braced body or an implicit statement list up to EOF."""
        if self._check("{"):
            location = self._advance().location
            body = self._parse_block_body(location)
            if not self._at_end():
                token = self._peek()
                raise UnexpectedTokenError(
                    token.text,
                    expected="end of input",
                    location=token.location,
                    source_line=token.source_line,
                )
        else:
            location = self._peek().location
            statements = []
            while not self._at_end():
                statements.append(self._parse_statement())
            body = BlockStatement(location=location, statements=statements)

        return body

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._peek().kind == TokenKind.EOF

    def _peek(self) -> Token:
        return self.tokens[self._pos]

    def _advance(self) -> Token:
        """Consume and return the current token. EOF is never consumed."""
        token = self.tokens[self._pos]
        if token.kind != TokenKind.EOF:
            self._pos += 1
        return token

    def _check(self, punct: str) -> bool:
        """Check if the current token is the punctuator punct."""
        return self._peek().is_punctuator(punct)

    def _check_keyword(self, keyword: str) -> bool:
        return self._peek().is_keyword(keyword)

    def _match(self, punct: str) -> bool:
        """Consume the current token if it is the punctuator punct."""
        if self._check(punct):
            self._advance()
            return True
        return False

    def _expect(self, punct: str) -> Token:
        """
        Expect and consume a specific punctuator.

        Raises:
            MissingTokenError: If the current token is anything else
        """
        if self._check(punct):
            return self._advance()

        current = self._peek()
        raise MissingTokenError(punct, current.location, current.source_line)

    def _descend(self, parse_fn: Callable[[], T]) -> T:
        """
        Call parse_fn one nesting level deeper.

        Raises:
            NestingTooDeepError: If MAX_NESTING_DEPTH would be exceeded
        """
        if self._depth >= MAX_NESTING_DEPTH:
            raise self._nesting_error()

        self._depth += 1
        try:
            return parse_fn()
        finally:
            self._depth -= 1

    def _nesting_error(self) -> NestingTooDeepError:
        token = self._peek()
        return NestingTooDeepError(MAX_NESTING_DEPTH, token.location, token.source_line)

    # =========================================================================
    # Statement Parsing
    # =========================================================================

    def _parse_block_body(self, location) -> BlockStatement:
        """Parse statements up to and including the closing '}'."""
        statements = []
        while not self._check("}"):
            if self._at_end():
                self._expect("}")
            statements.append(self._parse_statement())
        self._advance()
        return BlockStatement(location=location, statements=statements)

    def _parse_statement(self) -> Statement:
        """Parse any statement."""
        token = self._peek()

        if token.is_keyword("return"):
            return self._parse_return_statement()
        if token.is_keyword("if"):
            return self._parse_if_statement()
        if token.is_keyword("for"):
            return self._parse_for_statement()
        if token.is_keyword("while"):
            return self._parse_while_statement()
        if token.is_punctuator("{"):
            self._advance()
            return self._descend(lambda: self._parse_block_body(token.location))

        return self._parse_expression_statement()

    def _parse_return_statement(self) -> ReturnStatement:
        location = self._advance().location
        value = self._parse_expression()
        self._expect(";")
        return ReturnStatement(location=location, value=value)

    def _parse_if_statement(self) -> IfStatement:
        location = self._advance().location
        self._expect("(")
        condition = self._parse_expression()
        self._expect(")")

        then_branch = self._descend(self._parse_statement)

        else_branch = None
        if self._check_keyword("else"):
            self._advance()
            else_branch = self._descend(self._parse_statement)

        return IfStatement(
            location=location,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_for_statement(self) -> ForStatement:
        location = self._advance().location
        self._expect("(")

        initializer = self._parse_expression_statement()

        condition = None
        if not self._check(";"):
            condition = self._parse_expression()
        self._expect(";")

        update = None
        if not self._check(")"):
            update = self._parse_expression()
        self._expect(")")

        body = self._descend(self._parse_statement)

        return ForStatement(
            location=location,
            initializer=initializer,
            condition=condition,
            update=update,
            body=body,
        )

    def _parse_while_statement(self) -> ForStatement:
        location = self._advance().location
        self._expect("(")
        condition = self._parse_expression()
        self._expect(")")

        body = self._descend(self._parse_statement)

        return ForStatement(location=location, condition=condition, body=body)

    def _parse_expression_statement(self) -> Statement:
        """Parse 'expr? ;'. The empty statement becomes an empty block."""
        token = self._peek()
        if self._match(";"):
            return BlockStatement(location=token.location)

        expression = self._parse_expression()
        self._expect(";")
        return ExpressionStatement(location=token.location, expression=expression)

    # =========================================================================
    # Expression Parsing (Operator Precedence)
    # =========================================================================

    def _parse_expression(self) -> Expression:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expression:
        """Parse assignment expression (right-associative)."""
        expr = self._parse_equality()

        if self._check("="):
            self._advance()
            if not isinstance(expr, VariableExpression):
                raise InvalidLValueError(
                    expr.location,
                    source_line_at(self._source, expr.location.offset),
                )
            value = self._descend(self._parse_assignment)
            return AssignmentExpression(location=expr.location, target=expr, value=value)

        return expr

    def _parse_equality(self) -> Expression:
        """Parse equality expression (== !=)."""
        return self._parse_binary(
            self._parse_relational,
            {
                "==": BinaryOperator.EQUAL,
                "!=": BinaryOperator.NOT_EQUAL,
            },
        )

    def _parse_relational(self) -> Expression:
        """
        Parse relational expression (< <= > >=).

        '>' and '>=' swap their operands into LESS and LESS_EQ.
        """
        expr = self._parse_additive()

        def swapped_operand() -> Expression:
            if self.legacy_relational:
                return self._descend(self._parse_equality)
            return self._parse_additive()

        while True:
            token = self._peek()
            if token.is_punctuator("<"):
                self._advance()
                expr = self._binary(BinaryOperator.LESS, expr, self._parse_additive())
            elif token.is_punctuator("<="):
                self._advance()
                expr = self._binary(BinaryOperator.LESS_EQ, expr, self._parse_additive())
            elif token.is_punctuator(">"):
                self._advance()
                expr = self._binary(BinaryOperator.LESS, swapped_operand(), expr)
            elif token.is_punctuator(">="):
                self._advance()
                expr = self._binary(BinaryOperator.LESS_EQ, swapped_operand(), expr)
            else:
                return expr

    def _parse_additive(self) -> Expression:
        """Parse additive expression (+ -)."""
        return self._parse_binary(
            self._parse_multiplicative,
            {
                "+": BinaryOperator.ADD,
                "-": BinaryOperator.SUBTRACT,
            },
        )

    def _parse_multiplicative(self) -> Expression:
        """Parse multiplicative expression (* /)."""
        return self._parse_binary(
            self._parse_unary,
            {
                "*": BinaryOperator.MULTIPLY,
                "/": BinaryOperator.DIVIDE,
            },
        )

    def _parse_binary(
        self,
        operand_parser: Callable[[], Expression],
        operators: dict[str, BinaryOperator],
    ) -> Expression:
        """
        Generic left-associative binary expression parser.

        Args:
            operand_parser: Function to parse operands
            operators: Map of punctuator text to binary operators
        """
        expr = operand_parser()

        while self._peek().kind == TokenKind.PUNCTUATOR and self._peek().text in operators:
            op_token = self._advance()
            right = operand_parser()
            expr = self._binary(operators[op_token.text], expr, right)

        return expr

    @staticmethod
    def _binary(operator: BinaryOperator, left: Expression, right: Expression) -> BinaryExpression:
        return BinaryExpression(location=left.location, operator=operator, left=left, right=right)

    def _parse_unary(self) -> Expression:
        """Parse unary expression (+ -)."""
        token = self._peek()

        if token.is_punctuator("+"):
            self._advance()
            return self._descend(self._parse_unary)

        if token.is_punctuator("-"):
            self._advance()
            operand = self._descend(self._parse_unary)
            return NegateExpression(location=token.location, operand=operand)

        return self._parse_primary()

    def _parse_primary(self) -> Expression:
        """Parse primary expression (parenthesized, identifier, number)."""
        token = self._peek()

        if token.is_punctuator("("):
            self._advance()
            expr = self._descend(self._parse_expression)
            self._expect(")")
            return expr

        if token.kind == TokenKind.IDENTIFIER:
            self._advance()
            variable = self._symbols.resolve(token.text)
            return VariableExpression(location=token.location, variable=variable)

        if token.kind == TokenKind.NUMBER:
            self._advance()
            return NumberLiteral(location=token.location, value=token.value)

        raise UnexpectedTokenError(
            token.text,
            expected="an expression",
            location=token.location,
            source_line=token.source_line,
        )


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(tokens: list[Token], legacy_relational: bool = False) -> Function:
    """Parse a token list. See Parser.parse."""
    return Parser(tokens, legacy_relational=legacy_relational).parse()


def parse_source(source: str, legacy_relational: bool = False) -> Function:
    """
    Lex and parse source text.

    Raises:
        LexError: If the source cannot be tokenized
        ParseError: If the tokens do not match the grammar
    """
    return parse(tokenize(source), legacy_relational=legacy_relational)
