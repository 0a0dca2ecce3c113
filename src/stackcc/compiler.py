"""
stackcc Compiler Main Module
============================

This module provides the main compiler interface. It orchestrates the
complete compilation process:

    Source → Lex → Parse → Generate → Assembly

Usage
-----
Command line:
    $ stackcc '{ return 1+2*3-4; }' > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    3

Programmatic:
    >>> from stackcc import compile_source
    >>> asm = compile_source('{ return 42; }')

Error Handling
--------------
Compilation is fail-fast: the first LexError or ParseError propagates to
the caller and no assembly is produced.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from stackcc.ast import Function
from stackcc.codegen import CodeGenerator
from stackcc.lexer import Lexer, Token
from stackcc.parser import Parser

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        output_comments: Include '#' comments in the generated assembly
        legacy_relational: Parse the right operand of '>' and '>=' at the
            equality level, as earlier releases did. With the default
            (False) they bind exactly like '<' and '<='.
    """
    output_comments: bool = False
    legacy_relational: bool = False


@dataclass
class CompilerResult:
    """
    Result of a successful compilation. Failures raise instead of
    returning a result.

    Attributes:
        source: The compiled source text
        assembly: Generated assembly code
        tokens: Token list produced by the lexer
        function: The parsed function
        label_count: Number of branch labels generated
    """
    source: str = ""
    assembly: str = ""
    tokens: list[Token] = field(default_factory=list)
    function: Optional[Function] = None
    label_count: int = 0

    @property
    def token_count(self) -> int:
        return len(self.tokens)


class Compiler:
    """
    The stackcc compiler.

    Example:
        compiler = Compiler(CompilerOptions(output_comments=True))
        result = compiler.compile_source("{ return 42; }")
        print(result.assembly)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str) -> CompilerResult:
        """
        Compile source text to assembly.

        Args:
            source: Program source

        Returns:
            CompilerResult containing the assembly and intermediate stages

        Raises:
            CompilerError: If the source fails to lex or parse
            InternalCompilerError: If code generation meets a malformed tree
        """
        result = CompilerResult(source=source)

        # Stage 1: Lexical analysis
        result.tokens = self._lex(source)
        logger.debug("Lexed %d tokens", result.token_count)

        # Stage 2: Parsing
        result.function = self._parse(result.tokens)
        logger.debug(
            "Parsed function with %d locals (stack size %d)",
            len(result.function.locals), result.function.stack_size,
        )

        # Stage 3: Code generation
        generator = CodeGenerator(output_comments=self.options.output_comments)
        result.assembly = generator.generate(result.function)
        result.label_count = generator.label_count
        logger.debug("Generated %d bytes of assembly", len(result.assembly))

        return result

    def tokenize(self, source: str) -> list[Token]:
        """Run only the lexer."""
        return self._lex(source)

    def parse(self, source: str) -> Function:
        """Run the lexer and parser, without code generation."""
        return self._parse(self._lex(source))

    def _lex(self, source: str) -> list[Token]:
        return Lexer(source).tokenize()

    def _parse(self, tokens: list[Token]) -> Function:
        parser = Parser(tokens, legacy_relational=self.options.legacy_relational)
        return parser.parse()


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(
    source: str,
    output_comments: bool = False,
    legacy_relational: bool = False,
) -> str:
    """
    Compile source text to x86-64 assembly.

    This is the primary high-level interface.

    Raises:
        CompilerError: If compilation fails

    Example:
        >>> asm = compile_source("{ a = 3; b = a + 2; return a + b; }")
    """
    options = CompilerOptions(
        output_comments=output_comments,
        legacy_relational=legacy_relational,
    )
    return Compiler(options).compile_source(source).assembly
