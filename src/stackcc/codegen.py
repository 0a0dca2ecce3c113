"""
x86-64 Code Generator for stackcc
=================================

This module generates GNU assembler (AT&T syntax) x86-64 code from a
parsed Function.

Code Generation Strategy
------------------------
The generator uses a simple stack-based evaluation model:

1. Every expression leaves its result in %rax (the accumulator)
2. For binary operations the right operand is evaluated and pushed, then
   the left operand is evaluated and the right one is popped into %rdi
3. Local variables live at negative offsets from %rbp

Register Usage
--------------
| Register | Usage                                    |
|----------|------------------------------------------|
| %rax     | Accumulator, function return value       |
| %rdi     | Secondary operand, store address         |
| %rbp     | Frame pointer                            |
| %rsp     | Stack pointer, temporaries               |

Stack Frame Layout
------------------
    +----------------+
    | Return address |  (pushed by call)
    +----------------+
    | Saved %rbp     |
    +----------------+ <- %rbp
    | Local var 1    |  -8(%rbp)
    | ...            |
    | Local var N    |  -8N(%rbp)
    +----------------+ <- %rsp after prologue (16-byte aligned)
    | Temp values    |  (expression evaluation)
    +----------------+

Invariants
----------
- Every push is matched by a pop within the same statement: the tracked
  stack depth is 0 at every statement boundary.
- Each if and loop takes a fresh label number, so labels never collide.

Violating either raises InternalCompilerError.

Generated Assembly Format
-------------------------
    .global main
    main:
      push %rbp
      mov %rsp, %rbp
      sub $16, %rsp
      ...
    .L.return:
      mov %rbp, %rsp
      pop %rbp
      ret

Usage
-----
>>> from stackcc.parser import parse_source
>>> from stackcc.codegen import CodeGenerator
>>> asm = CodeGenerator().generate(parse_source("{ return 42; }"))
"""

import logging
from functools import partial

from stackcc.ast import (
    ASTNode,
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
from stackcc.errors import InternalCompilerError
from stackcc.limits import recursion_headroom

logger = logging.getLogger(__name__)

RETURN_LABEL = ".L.return"

ARITHMETIC_INSTRUCTIONS = {
    BinaryOperator.ADD: "add",
    BinaryOperator.SUBTRACT: "sub",
    BinaryOperator.MULTIPLY: "imul",
}

COMPARISON_SETCC = {
    BinaryOperator.EQUAL: "sete",
    BinaryOperator.NOT_EQUAL: "setne",
    BinaryOperator.LESS: "setl",
    BinaryOperator.LESS_EQ: "setle",
}


class CodeGenerator:
    """
    Generates x86-64 assembly from a parsed Function.

    A generator instance carries the label counter and the stack depth for
    one compilation; generate() resets both.

    Attributes:
        output_comments: Interleave '#' comments naming each construct
    """

    def __init__(self, output_comments: bool = False):
        self.output_comments = output_comments

        # Assembly output lines
        self._output: list[str] = []

        # Label generation
        self._label_counter: int = 0

        # Values pushed and not yet popped
        self._depth: int = 0

    @property
    def label_count(self) -> int:
        """Number of label numbers handed out so far."""
        return self._label_counter

    @property
    def stack_depth(self) -> int:
        """Current push/pop balance."""
        return self._depth

    def generate(self, function: Function) -> str:
        """
        Generate assembly for a function.

        Args:
            function: The parsed function

        Returns:
            Complete assembly source, ending with a newline

        Raises:
            InternalCompilerError: If the tree is malformed
        """
        self._output = []
        self._label_counter = 0
        self._depth = 0

        self._emit(".global main")
        self._emit("main:")

        # Prologue
        self._emit_instruction("push %rbp")
        self._emit_instruction("mov %rsp, %rbp")
        self._emit_instruction(f"sub ${function.stack_size}, %rsp")

        with recursion_headroom():
            self._generate_statement(function.body)

        # Epilogue
        self._emit_label(RETURN_LABEL)
        self._emit_instruction("mov %rbp, %rsp")
        self._emit_instruction("pop %rbp")
        self._emit_instruction("ret")

        logger.debug(
            "Generated %d lines, %d labels, stack size %d",
            len(self._output), self._label_counter, function.stack_size,
        )
        return "\n".join(self._output) + "\n"

    # =========================================================================
    # Assembly Output Methods
    # =========================================================================

    def _emit(self, line: str) -> None:
        self._output.append(line)

    def _emit_instruction(self, instruction: str) -> None:
        self._emit(f"  {instruction}")

    def _emit_label(self, label: str) -> None:
        self._emit(f"{label}:")

    def _emit_comment(self, comment: str) -> None:
        if self.output_comments:
            self._emit(f"  # {comment}")

    def _new_label_number(self) -> int:
        """Reserve a fresh label suffix."""
        self._label_counter += 1
        return self._label_counter

    def _push(self) -> None:
        self._emit_instruction("push %rax")
        self._depth += 1

    def _pop(self, register: str) -> None:
        self._emit_instruction(f"pop {register}")
        self._depth -= 1

    # =========================================================================
    # Statement Code Generation
    # =========================================================================

    def _generate_statement(self, stmt: Statement) -> None:
        """Generate code for any statement and check the stack balance."""
        if isinstance(stmt, BlockStatement):
            for child in stmt.statements:
                self._generate_statement(child)
        elif isinstance(stmt, ExpressionStatement):
            self._generate_expression(stmt.expression)
        elif isinstance(stmt, ReturnStatement):
            self._generate_return(stmt)
        elif isinstance(stmt, IfStatement):
            self._generate_if(stmt)
        elif isinstance(stmt, ForStatement):
            self._generate_for(stmt)
        else:
            raise InternalCompilerError(f"invalid statement: {self._describe(stmt)}")

        if self._depth != 0:
            raise InternalCompilerError(
                f"stack depth {self._depth} after {self._describe(stmt)}"
            )

    def _generate_return(self, stmt: ReturnStatement) -> None:
        self._emit_comment("return")
        self._generate_expression(stmt.value)
        self._emit_instruction(f"jmp {RETURN_LABEL}")

    def _generate_if(self, stmt: IfStatement) -> None:
        """Generate code for if statement."""
        number = self._new_label_number()
        else_label = f".L.else.{number}"
        end_label = f".L.end.{number}"

        self._emit_comment("if condition")
        self._generate_expression(stmt.condition)
        self._emit_instruction("cmp $0, %rax")
        self._emit_instruction(f"je {else_label}")

        self._generate_statement(stmt.then_branch)
        self._emit_instruction(f"jmp {end_label}")

        self._emit_label(else_label)
        if stmt.else_branch is not None:
            self._emit_comment("else")
            self._generate_statement(stmt.else_branch)

        self._emit_label(end_label)

    def _generate_for(self, stmt: ForStatement) -> None:
        """Generate code for 'for' and 'while' loops."""
        number = self._new_label_number()
        begin_label = f".L.begin.{number}"
        end_label = f".L.end.{number}"

        if stmt.initializer is not None:
            self._emit_comment("for init")
            self._generate_statement(stmt.initializer)

        self._emit_label(begin_label)

        if stmt.condition is not None:
            self._emit_comment("for condition")
            self._generate_expression(stmt.condition)
            self._emit_instruction("cmp $0, %rax")
            self._emit_instruction(f"je {end_label}")

        self._generate_statement(stmt.body)

        if stmt.update is not None:
            self._emit_comment("for update")
            self._generate_expression(stmt.update)

        self._emit_instruction(f"jmp {begin_label}")
        self._emit_label(end_label)

    # =========================================================================
    # Expression Code Generation
    # =========================================================================

    def _generate_address(self, expr: Expression) -> None:
        """
        Load the address of an lvalue into %rax.

        Only variables live in memory; anything else reaching here means
        the parser built an invalid tree.
        """
        if isinstance(expr, VariableExpression):
            self._emit_instruction(f"lea {expr.variable.offset}(%rbp), %rax")
            return

        raise InternalCompilerError(f"not an lvalue: {self._describe(expr)}")

    def _generate_expression(self, expr: Expression) -> None:
        """
        Generate code for an expression, leaving the result in %rax.

        Nodes are expanded from an explicit work list instead of by
        recursion, so expressions of any depth compile. An entry is either
        a node still to expand or a callable that emits the instructions
        following its operands. Entries are pushed in reverse order of
        emission.
        """
        work = [expr]

        while work:
            item = work.pop()

            if callable(item):
                item()
            elif isinstance(item, NumberLiteral):
                self._emit_instruction(f"mov ${item.value}, %rax")
            elif isinstance(item, VariableExpression):
                self._generate_address(item)
                self._emit_instruction("mov (%rax), %rax")
            elif isinstance(item, NegateExpression):
                work.append(partial(self._emit_instruction, "neg %rax"))
                work.append(item.operand)
            elif isinstance(item, AssignmentExpression):
                # address, push, value, pop %rdi, store
                work.append(self._emit_store)
                work.append(item.value)
                work.append(self._push)
                work.append(partial(self._generate_address, item.target))
            elif isinstance(item, BinaryExpression):
                # right, push, left, pop %rdi, operator
                work.append(partial(self._emit_binary_operator, item.operator))
                work.append(partial(self._pop, "%rdi"))
                work.append(item.left)
                work.append(self._push)
                work.append(item.right)
            else:
                raise InternalCompilerError(f"invalid expression: {self._describe(item)}")

    def _emit_store(self) -> None:
        """Store %rax at the address saved on the stack."""
        self._pop("%rdi")
        self._emit_instruction("mov %rax, (%rdi)")

    def _emit_binary_operator(self, op: BinaryOperator) -> None:
        """Combine %rax (left) and %rdi (right) into %rax."""
        if op in ARITHMETIC_INSTRUCTIONS:
            self._emit_instruction(f"{ARITHMETIC_INSTRUCTIONS[op]} %rdi, %rax")
        elif op == BinaryOperator.DIVIDE:
            # Sign-extend %rax into %rdx:%rax for signed division
            self._emit_instruction("cqo")
            self._emit_instruction("idiv %rdi")
        elif op.is_comparison:
            self._emit_instruction("cmp %rdi, %rax")
            self._emit_instruction(f"{COMPARISON_SETCC[op]} %al")
            self._emit_instruction("movzb %al, %rax")
        else:
            raise InternalCompilerError(f"invalid binary operator: {op}")

    @staticmethod
    def _describe(node) -> str:
        if isinstance(node, ASTNode):
            return repr(node)
        return type(node).__name__


# =============================================================================
# Convenience Functions
# =============================================================================

def generate(function: Function, output_comments: bool = False) -> str:
    """Generate assembly for a function. See CodeGenerator.generate."""
    return CodeGenerator(output_comments=output_comments).generate(function)
