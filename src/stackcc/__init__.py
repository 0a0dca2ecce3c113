"""
stackcc - A Stack-Machine Compiler for x86-64
=============================================

This package compiles a small C-like expression-and-statement language to
GNU assembler (AT&T syntax) x86-64 code. The program body becomes `main`,
and the value it returns becomes the process exit status.

Language Subset
---------------
- Integer arithmetic: + - * / and unary + -
- Comparisons: == != < <= > >=
- Local variables, created on first use, and assignment
- Statements: blocks, if/else, for, while, return, expression statements

Pipeline
--------
    Source → Lexer → Parser (+ symbol table) → Code Generator → Assembly

Quick Start
-----------
    >>> from stackcc import compile_source
    >>> print(compile_source("{ return 1+2*3-4; }"))

Or from the terminal:
    $ stackcc '{ return 1+2*3-4; }' > prog.s
    $ cc -o prog prog.s && ./prog; echo $?
    3
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from stackcc.compiler import Compiler, CompilerOptions, CompilerResult, compile_source
from stackcc.errors import (
    SourceLocation,
    CompilerError,
    LexError,
    InvalidCharacterError,
    ParseError,
    UnexpectedTokenError,
    MissingTokenError,
    InvalidLValueError,
    NestingTooDeepError,
    InternalCompilerError,
)
from stackcc.lexer import Lexer, Token, TokenKind, tokenize
from stackcc.parser import Parser, parse, parse_source
from stackcc.codegen import CodeGenerator, generate
from stackcc.symbols import SymbolTable, LocalVariable
from stackcc.ast import Function, ASTPrinter

__all__ = [
    # Version
    "__version__",
    # Main API
    "Compiler",
    "CompilerOptions",
    "CompilerResult",
    "compile_source",
    # Errors
    "SourceLocation",
    "CompilerError",
    "LexError",
    "InvalidCharacterError",
    "ParseError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "InvalidLValueError",
    "NestingTooDeepError",
    "InternalCompilerError",
    # Lexer
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    # Parser
    "Parser",
    "parse",
    "parse_source",
    # Code Generator
    "CodeGenerator",
    "generate",
    # Symbols and AST
    "SymbolTable",
    "LocalVariable",
    "Function",
    "ASTPrinter",
]
