# =============================================================================
# test_parser.py - Parser Unit Tests
# =============================================================================
# Tests for the recursive descent parser.
#
# Test coverage includes:
#   - Operator precedence and associativity
#   - Operand swapping for '>' and '>=' in both relational modes
#   - Statements: blocks, if/else, for, while, return, empty
#   - Local variable collection and frame size
#   - Syntax errors and their locations
# =============================================================================

import pytest

from stackcc.ast import (
    ASTPrinter,
    ASTVisitor,
    BinaryExpression,
    BinaryOperator,
    BlockStatement,
    ExpressionStatement,
    ForStatement,
    IfStatement,
    ReturnStatement,
    VariableExpression,
)
from stackcc.errors import (
    CompilerError,
    InvalidLValueError,
    MissingTokenError,
    NestingTooDeepError,
    ParseError,
    UnexpectedTokenError,
)
from stackcc.lexer import tokenize
from stackcc.limits import MAX_NESTING_DEPTH
from stackcc.parser import Parser, parse, parse_source


# =============================================================================
# Helper Functions
# =============================================================================

def first_statement(source: str, **kwargs):
    return parse_source(source, **kwargs).body.statements[0]


def expr_str(source: str, **kwargs) -> str:
    """
    Parse a single expression statement and render it fully parenthesized.

    Args:
        source: Source of one statement, e.g. "1+2*3;"
    """
    stmt = first_statement(source, **kwargs)
    if isinstance(stmt, ReturnStatement):
        return ASTPrinter()._expr_str(stmt.value)
    return ASTPrinter()._expr_str(stmt.expression)


# =============================================================================
# Expression Tests
# =============================================================================

class TestPrecedence:
    """Test operator precedence and associativity."""

    @pytest.mark.parametrize("source, expected", [
        ("1+2*3-4;", "((1 + (2 * 3)) - 4)"),
        ("1-2-3;", "((1 - 2) - 3)"),
        ("8/4/2;", "((8 / 4) / 2)"),
        ("(1+2)*3;", "((1 + 2) * 3)"),
        ("1+2<3*4;", "((1 + 2) < (3 * 4))"),
        ("1<2==3<=4;", "((1 < 2) == (3 <= 4))"),
        ("a==b!=c;", "((a == b) != c)"),
        ("a=b=3;", "(a = (b = 3))"),
        ("a=1+2==3;", "(a = ((1 + 2) == 3))"),
    ])
    def test_binary_structure(self, source, expected):
        assert expr_str(source) == expected

    def test_unary_minus(self):
        assert expr_str("-3*2;") == "((-3) * 2)"
        assert expr_str("- -3;") == "(-(-3))"

    def test_unary_plus_is_identity(self):
        assert expr_str("+5;") == "5"
        assert expr_str("-+-3;") == "(-(-3))"

    def test_return_expression(self):
        assert expr_str("{ return 1+2*3-4; }") == "((1 + (2 * 3)) - 4)"


class TestRelationalSwap:
    """'>' and '>=' become '<' and '<=' with their operands swapped."""

    def test_greater_than(self):
        stmt = first_statement("a>b;")
        expr = stmt.expression
        assert expr.operator == BinaryOperator.LESS
        assert expr.left.name == "b"
        assert expr.right.name == "a"

    def test_greater_equal(self):
        assert expr_str("a>=b;") == "(b <= a)"

    def test_swapped_operand_is_additive(self):
        assert expr_str("a>b+1;") == "((b + 1) < a)"

    def test_chained_with_less(self):
        assert expr_str("a<b>c;") == "(c < (a < b))"

    def test_standard_binding_with_equality(self):
        """By default '>' binds tighter than '==', like '<'."""
        assert expr_str("1>2==0;") == "((2 < 1) == 0)"
        assert expr_str("1<2==0;") == "((1 < 2) == 0)"

    def test_legacy_binding_with_equality(self):
        """In legacy mode the swapped operand absorbs a following '=='."""
        assert expr_str("1>2==0;", legacy_relational=True) == "((2 == 0) < 1)"
        assert expr_str("1>=2!=0;", legacy_relational=True) == "((2 != 0) <= 1)"

    def test_legacy_mode_leaves_less_than_alone(self):
        assert expr_str("1<2==0;", legacy_relational=True) == "((1 < 2) == 0)"


class TestAssignment:

    def test_assignment_target_is_variable(self):
        expr = first_statement("x = 5;").expression
        assert isinstance(expr.target, VariableExpression)
        assert expr.target.name == "x"

    def test_parenthesized_variable_is_assignable(self):
        assert expr_str("(a) = 1;") == "(a = 1)"

    @pytest.mark.parametrize("source", ["1 = 2;", "(a+b) = 1;", "-a = 1;", "a+b = 1;"])
    def test_non_variable_target_rejected(self, source):
        with pytest.raises(InvalidLValueError):
            parse_source(source)

    def test_lvalue_error_location(self):
        with pytest.raises(InvalidLValueError) as exc_info:
            parse_source("{ a = 1; 1 = a; }")
        error = exc_info.value
        assert error.location.offset == 9
        assert error.source_line == "{ a = 1; 1 = a; }"
        assert "not an lvalue" in str(error)


# =============================================================================
# Statement Tests
# =============================================================================

class TestStatements:
    """Test statement parsing."""

    def test_block_program(self):
        function = parse_source("{ a = 1; return a; }")
        assert isinstance(function.body, BlockStatement)
        assert [type(s) for s in function.body.statements] == [
            ExpressionStatement, ReturnStatement,
        ]

    def test_implicit_body(self):
        """A program that does not open with '{' runs to end of input."""
        function = parse_source("a=3; b=a+2; a+b;")
        assert len(function.body.statements) == 3
        assert all(isinstance(s, ExpressionStatement) for s in function.body.statements)

    def test_empty_block(self):
        function = parse_source("{}")
        assert function.body.statements == []
        assert function.locals == []
        assert function.stack_size == 0

    def test_empty_statement(self):
        stmt = first_statement("{ ; }")
        assert isinstance(stmt, BlockStatement)
        assert stmt.statements == []

    def test_nested_blocks(self):
        stmt = first_statement("{ { a = 1; { b = 2; } } }")
        assert isinstance(stmt, BlockStatement)
        assert isinstance(stmt.statements[1], BlockStatement)

    def test_if_without_else(self):
        stmt = first_statement("{ if (a) b = 1; }")
        assert isinstance(stmt, IfStatement)
        assert stmt.else_branch is None

    def test_if_else(self):
        stmt = first_statement("{ if (a < 2) return 1; else return 2; }")
        assert isinstance(stmt.then_branch, ReturnStatement)
        assert isinstance(stmt.else_branch, ReturnStatement)

    def test_dangling_else_binds_to_nearest_if(self):
        outer = first_statement("{ if (a) if (b) return 1; else return 2; }")
        assert outer.else_branch is None
        assert isinstance(outer.then_branch, IfStatement)
        assert outer.then_branch.else_branch is not None

    def test_for_all_clauses(self):
        stmt = first_statement("{ for (i=0; i<10; i=i+1) a = a + i; }")
        assert isinstance(stmt, ForStatement)
        assert isinstance(stmt.initializer, ExpressionStatement)
        assert ASTPrinter()._expr_str(stmt.condition) == "(i < 10)"
        assert ASTPrinter()._expr_str(stmt.update) == "(i = (i + 1))"
        assert isinstance(stmt.body, ExpressionStatement)

    def test_for_empty_clauses(self):
        stmt = first_statement("{ for (;;) return 1; }")
        assert stmt.condition is None
        assert stmt.update is None
        assert isinstance(stmt.initializer, BlockStatement)
        assert stmt.initializer.statements == []

    def test_while_is_loop_without_init_or_update(self):
        stmt = first_statement("{ while (i<3) i=i+1; }")
        assert isinstance(stmt, ForStatement)
        assert stmt.initializer is None
        assert stmt.update is None
        assert ASTPrinter()._expr_str(stmt.condition) == "(i < 3)"

    def test_statement_locations(self):
        stmt = first_statement("{\n  return 1;\n}")
        assert stmt.location.line == 2
        assert stmt.location.column == 3


# =============================================================================
# Local Variable Tests
# =============================================================================

class TestLocals:
    """Test variable collection during parsing."""

    def test_locals_in_first_reference_order(self):
        function = parse_source("{ b = 1; a = 2; b = a; }")
        assert [(v.name, v.offset) for v in function.locals] == [("b", -8), ("a", -16)]
        assert function.stack_size == 16

    def test_references_share_one_variable(self):
        stmt = first_statement("x = x + 1;")
        target = stmt.expression.target
        operand = stmt.expression.value.left
        assert target.variable is operand.variable

    def test_frame_size_rounds_up(self):
        function = parse_source("a=1; b=2; c=3;")
        assert len(function.locals) == 3
        assert function.stack_size == 32

    def test_every_reference_resolves_to_a_listed_local(self):
        class Collector(ASTVisitor):
            def __init__(self):
                self.seen = []

            def visit_VariableExpression(self, node):
                self.seen.append(node.variable)

        function = parse_source("{ for (i=0; i<n; i=i+1) { s = s + i; } return s; }")
        collector = Collector()
        collector.visit(function.body)
        assert collector.seen
        assert all(v in function.locals for v in collector.seen)

    def test_parser_is_reusable(self):
        """Each parse() starts with a fresh symbol table."""
        parser = Parser(tokenize("{ a = 1; }"))
        first = parser.parse()
        second = parser.parse()
        assert [v.name for v in second.locals] == ["a"]
        assert first.stack_size == second.stack_size == 16


# =============================================================================
# Error Tests
# =============================================================================

class TestParseErrors:
    """Test parser error detection and reporting."""

    def test_missing_semicolon(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("{ return 1 }")
        assert exc_info.value.expected == ";"
        assert exc_info.value.location.offset == 11

    def test_missing_close_paren(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("{ return (1+2; }")
        assert exc_info.value.expected == ")"

    def test_missing_open_paren_after_if(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("{ if 1) return 1; }")
        assert exc_info.value.expected == "("

    def test_missing_close_brace(self):
        with pytest.raises(MissingTokenError) as exc_info:
            parse_source("{ a = 1;")
        assert exc_info.value.expected == "}"
        assert exc_info.value.location.offset == 8

    def test_expression_expected(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("{ 1 + ; }")
        error = exc_info.value
        assert error.expected == "an expression"
        assert error.found == ";"
        assert error.location.offset == 6

    def test_expression_expected_at_end(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("return")
        assert exc_info.value.found == ""
        assert "found end of input" in str(exc_info.value)

    def test_keyword_is_not_an_expression(self):
        with pytest.raises(ParseError):
            parse_source("{ a = return; }")

    def test_trailing_tokens_after_body(self):
        with pytest.raises(UnexpectedTokenError) as exc_info:
            parse_source("{ return 1; } 2;")
        assert exc_info.value.expected == "end of input"
        assert exc_info.value.location.offset == 14

    def test_error_message_has_caret(self):
        with pytest.raises(CompilerError) as exc_info:
            parse_source("{ return 1 }")
        lines = str(exc_info.value).splitlines()
        assert lines[0] == "{ return 1 }"
        assert lines[1] == "           ^ expected ';'"

    def test_parser_requires_eof(self):
        tokens = tokenize("1;")[:-1]
        with pytest.raises(ValueError):
            Parser(tokens)

    def test_parse_function_accepts_tokens(self):
        function = parse(tokenize("{ return 2>1; }"))
        stmt = function.body.statements[0]
        assert isinstance(stmt.value, BinaryExpression)
        assert stmt.value.operator == BinaryOperator.LESS

    def test_diagnostic_without_hint(self):
        with pytest.raises(InvalidLValueError) as exc_info:
            parse_source("1 = 2;")
        error = exc_info.value
        assert error.format_diagnostic(include_hint=False) == "1 = 2;\n^ not an lvalue"
        assert str(error).endswith("hint: left side of '=' must be a variable")


# =============================================================================
# Nesting Limit Tests
# =============================================================================

class TestNestingLimits:
    """Test MAX_NESTING_DEPTH and the iterative handling of operator chains."""

    def test_parentheses_at_limit(self):
        source = "(" * MAX_NESTING_DEPTH + "x" + ")" * MAX_NESTING_DEPTH + ";"
        stmt = first_statement(source)
        assert isinstance(stmt.expression, VariableExpression)

    def test_parentheses_past_limit(self):
        depth = MAX_NESTING_DEPTH + 1
        source = "{ return " + "(" * depth + "1" + ")" * depth + "; }"
        with pytest.raises(NestingTooDeepError) as exc_info:
            parse_source(source)
        error = exc_info.value
        assert error.max_depth == MAX_NESTING_DEPTH
        assert error.location.offset == 9 + MAX_NESTING_DEPTH + 1
        assert "^ nested too deeply" in str(error)

    def test_nested_blocks_past_limit(self):
        depth = MAX_NESTING_DEPTH + 2
        with pytest.raises(NestingTooDeepError):
            parse_source("{" * depth + "}" * depth)

    def test_nested_ifs_past_limit(self):
        with pytest.raises(NestingTooDeepError):
            parse_source("if (1) " * (MAX_NESTING_DEPTH + 2) + "1;")

    def test_unary_past_limit(self):
        with pytest.raises(NestingTooDeepError):
            parse_source("-" * (MAX_NESTING_DEPTH + 1) + "1;")

    def test_nesting_error_is_a_parse_error(self):
        with pytest.raises(ParseError):
            parse_source("a" + "=a" * (MAX_NESTING_DEPTH + 1) + ";")

    def test_long_chain_is_left_deep(self):
        function = parse_source("+".join(["1"] * 2000) + ";")
        expr = function.body.statements[0].expression
        depth = 0
        while isinstance(expr, BinaryExpression):
            assert isinstance(expr.right, BinaryExpression) is False
            expr = expr.left
            depth += 1
        assert depth == 1999

    def test_depth_counter_unwinds(self):
        """Sibling expressions do not accumulate nesting."""
        statements = ["(" * 300 + "1" + ")" * 300 + ";"] * 4
        function = parse_source("".join(statements))
        assert len(function.body.statements) == 4

    def test_long_chain_prints(self):
        function = parse_source(">".join(["a"] * 3000) + ";")
        text = ASTPrinter().print(function)
        assert text.count("<") == 2999
