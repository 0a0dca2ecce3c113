"""
stackcc Abstract Syntax Tree (AST) Definitions
==============================================

This module defines the AST node types built by the parser and consumed
by the code generator.

Node Hierarchy
--------------
ASTNode (base)
├── Statements
│   ├── BlockStatement - { ... } and the empty statement ';'
│   ├── ExpressionStatement - expression evaluated for its effect
│   ├── ReturnStatement - return expr;
│   ├── IfStatement - if/else
│   └── ForStatement - for and while loops
└── Expressions
    ├── BinaryExpression - + - * / == != < <=
    ├── NegateExpression - unary minus
    ├── AssignmentExpression - variable = expr
    ├── VariableExpression - reference to a local variable
    └── NumberLiteral - integer constant

Function is the root: the parsed body plus its local variables and
frame size.

Design Notes
------------
- Each node kind is its own dataclass holding exactly the fields that kind
  uses, so there are no fields that are invalid to read for some kinds.
- '>' and '>=' have no operators of their own: the parser builds LESS and
  LESS_EQ nodes with the operands swapped.
- Statement sequences are Python lists.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from stackcc.errors import SourceLocation
from stackcc.limits import recursion_headroom
from stackcc.symbols import LocalVariable


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node starts
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location}"


@dataclass
class Expression(ASTNode):
    """Base class for nodes that leave a value in the accumulator."""
    pass


@dataclass
class Statement(ASTNode):
    """Base class for nodes that are executed for effect."""
    pass


# =============================================================================
# Expression Nodes
# =============================================================================

class BinaryOperator(Enum):
    """Binary operator types."""
    # Arithmetic
    ADD = auto()        # +
    SUBTRACT = auto()   # -
    MULTIPLY = auto()   # *
    DIVIDE = auto()     # /

    # Comparison
    EQUAL = auto()      # ==
    NOT_EQUAL = auto()  # !=
    LESS = auto()       # < (and > with swapped operands)
    LESS_EQ = auto()    # <= (and >= with swapped operands)

    @property
    def is_comparison(self) -> bool:
        return self in (
            BinaryOperator.EQUAL,
            BinaryOperator.NOT_EQUAL,
            BinaryOperator.LESS,
            BinaryOperator.LESS_EQ,
        )


@dataclass
class NumberLiteral(Expression):
    """
    Integer literal.

    Attributes:
        value: The integer value (fits in 32 bits)
    """
    value: int = 0


@dataclass
class VariableExpression(Expression):
    """
    Reference to a local variable.

    Attributes:
        variable: The resolved symbol table entry
    """
    variable: LocalVariable = None

    @property
    def name(self) -> str:
        return self.variable.name


@dataclass
class NegateExpression(Expression):
    """
    Unary minus.

    Attributes:
        operand: The expression to negate
    """
    operand: Expression = None


@dataclass
class BinaryExpression(Expression):
    """
    Binary operation (left op right).

    Attributes:
        operator: The binary operator
        left: Left operand expression
        right: Right operand expression
    """
    operator: BinaryOperator = None
    left: Expression = None
    right: Expression = None


@dataclass
class AssignmentExpression(Expression):
    """
    Assignment (variable = value). Evaluates to the assigned value.

    Attributes:
        target: The variable being assigned
        value: The value to store
    """
    target: VariableExpression = None
    value: Expression = None


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass
class BlockStatement(Statement):
    """
    Compound statement enclosed in braces.

    An empty list also represents the empty statement ';'.

    Attributes:
        statements: Statements in source order
    """
    statements: list[Statement] = field(default_factory=list)


@dataclass
class ExpressionStatement(Statement):
    """
    Expression followed by a semicolon.

    Attributes:
        expression: The expression
    """
    expression: Expression = None


@dataclass
class ReturnStatement(Statement):
    """
    Return statement.

    Attributes:
        value: Expression whose value becomes the function result
    """
    value: Expression = None


@dataclass
class IfStatement(Statement):
    """
    If statement with optional else clause.

    Attributes:
        condition: The condition expression
        then_branch: Statement executed if condition is non-zero
        else_branch: Optional statement executed if condition is zero
    """
    condition: Expression = None
    then_branch: Statement = None
    else_branch: Optional[Statement] = None


@dataclass
class ForStatement(Statement):
    """
    Loop statement shared by 'for' and 'while'.

    A while loop has no initializer and no update.

    Attributes:
        initializer: Optional statement run once before the loop
        condition: Optional loop condition (absent means loop forever)
        update: Optional expression run after each iteration
        body: Loop body statement
    """
    initializer: Optional[Statement] = None
    condition: Optional[Expression] = None
    update: Optional[Expression] = None
    body: Statement = None


# =============================================================================
# Function Root
# =============================================================================

@dataclass
class Function:
    """
    A parsed function body.

    Attributes:
        body: The top-level block
        locals: Local variables in order of first reference
        stack_size: Frame size in bytes, a multiple of 16
    """
    body: BlockStatement
    locals: list[LocalVariable] = field(default_factory=list)
    stack_size: int = 0


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override visit_* methods for the node types they care about.

    Usage:
        class VariableCounter(ASTVisitor):
            def visit_VariableExpression(self, node):
                self.count += 1
    """

    def visit(self, node: ASTNode):
        """Dispatch to visit_<ClassName>, falling back to generic_visit."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit every child node."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

OPERATOR_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUBTRACT: "-",
    BinaryOperator.MULTIPLY: "*",
    BinaryOperator.DIVIDE: "/",
    BinaryOperator.EQUAL: "==",
    BinaryOperator.NOT_EQUAL: "!=",
    BinaryOperator.LESS: "<",
    BinaryOperator.LESS_EQ: "<=",
}


class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(function))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node) -> str:
        """Print a Function or AST node and return the text."""
        self.output = []
        self.indent_level = 0
        with recursion_headroom():
            if isinstance(node, Function):
                self._print_function(node)
            else:
                self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        indent = "  " * self.indent_level
        self.output.append(f"{indent}{text}")

    def _indent(self) -> None:
        self.indent_level += 1

    def _dedent(self) -> None:
        self.indent_level = max(0, self.indent_level - 1)

    def _print_function(self, function: Function) -> None:
        names = ", ".join(f"{v.name}@{v.offset}" for v in function.locals)
        self._emit(f"Function (stack size {function.stack_size}): [{names}]")
        self._indent()
        self.visit(function.body)
        self._dedent()

    def visit_BlockStatement(self, node: BlockStatement):
        self._emit("Block")
        self._indent()
        for stmt in node.statements:
            self.visit(stmt)
        self._dedent()

    def visit_IfStatement(self, node: IfStatement):
        self._emit(f"If ({self._expr_str(node.condition)})")
        self._indent()
        self._emit("Then:")
        self._indent()
        self.visit(node.then_branch)
        self._dedent()
        if node.else_branch:
            self._emit("Else:")
            self._indent()
            self.visit(node.else_branch)
            self._dedent()
        self._dedent()

    def visit_ForStatement(self, node: ForStatement):
        init = ""
        if isinstance(node.initializer, ExpressionStatement):
            init = self._expr_str(node.initializer.expression)
        cond = self._expr_str(node.condition)
        update = self._expr_str(node.update)
        self._emit(f"For ({init}; {cond}; {update})")
        self._indent()
        self.visit(node.body)
        self._dedent()

    def visit_ReturnStatement(self, node: ReturnStatement):
        self._emit(f"Return {self._expr_str(node.value)}")

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        self._emit(f"Expr: {self._expr_str(node.expression)}")

    def _expr_str(self, expr: Optional[Expression]) -> str:
        """
        Convert expression to a fully parenthesized string.

        Walks the tree with an explicit stack so long operator chains
        print without recursion.
        """
        if expr is None:
            return ""

        stack = [(expr, False)]
        parts: list[str] = []

        while stack:
            node, operands_done = stack.pop()

            if isinstance(node, NumberLiteral):
                parts.append(str(node.value))
            elif isinstance(node, VariableExpression):
                parts.append(node.name)
            elif not operands_done and isinstance(node, NegateExpression):
                stack.append((node, True))
                stack.append((node.operand, False))
            elif not operands_done and isinstance(node, BinaryExpression):
                stack.append((node, True))
                stack.append((node.right, False))
                stack.append((node.left, False))
            elif not operands_done and isinstance(node, AssignmentExpression):
                stack.append((node, True))
                stack.append((node.value, False))
                stack.append((node.target, False))
            elif isinstance(node, NegateExpression):
                parts.append(f"(-{parts.pop()})")
            elif isinstance(node, BinaryExpression):
                right, left = parts.pop(), parts.pop()
                parts.append(f"({left} {OPERATOR_SYMBOLS[node.operator]} {right})")
            elif isinstance(node, AssignmentExpression):
                value, target = parts.pop(), parts.pop()
                parts.append(f"({target} = {value})")
            else:
                parts.append(f"<{type(node).__name__}>")

        return parts[0]
