"""
stackcc Error Hierarchy
=======================

This module defines the exception hierarchy for the compiler. User-facing
errors inherit from CompilerError, allowing callers to catch every lex and
parse failure with a single except clause.

Exception Hierarchy
-------------------
CompilerError (base for user-facing errors)
├── LexError - a character matches no token production
│   └── InvalidCharacterError - unexpected character
└── ParseError - the token stream does not match the grammar
    ├── UnexpectedTokenError - token where something else was expected
    ├── MissingTokenError - required punctuator not found
    ├── InvalidLValueError - left side of '=' is not a variable
    └── NestingTooDeepError - program nests deeper than MAX_NESTING_DEPTH

InternalCompilerError (separate hierarchy)
    Raised when the code generator meets a tree it cannot handle. This
    signals a defect in the compiler itself, never bad input.

Error Message Format
--------------------
Errors render the offending source line with a caret under the error
column, followed by the message on the same line as the caret. The hint
line is optional (see CompilerError.format_diagnostic):

    a = 1 @ 2;
          ^ invalid character '@'
    hint: supported punctuators are + - * / ( ) < > = ; { }
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in the source text.

    Attributes:
        offset: Character offset from the start of the source (0-indexed)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    offset: int
    line: int = 1
    column: int = 1

    @classmethod
    def from_offset(cls, source: str, offset: int) -> "SourceLocation":
        """Compute line and column for an offset into source."""
        line = source.count("\n", 0, offset) + 1
        line_start = source.rfind("\n", 0, offset) + 1
        return cls(offset=offset, line=line, column=offset - line_start + 1)

    def __str__(self) -> str:
        """Format as 'line:column' for log messages."""
        return f"{self.line}:{self.column}"


def source_line_at(source: str, offset: int) -> str:
    """Return the full line of source containing offset."""
    line_start = source.rfind("\n", 0, offset) + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    return source[line_start:line_end]


# =============================================================================
# Base Exception
# =============================================================================

class CompilerError(Exception):
    """
    Base exception for all user-facing compiler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred
        hint: A suggestion for fixing the error
        source_line: The source text of the line containing the error
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self.format_diagnostic())

    def format_diagnostic(self, include_hint: bool = True) -> str:
        """
        Format the error with source context and, optionally, the hint.

        Without a source line only the message is shown, prefixed
        with 'error:'.
        """
        parts = []

        if self.source_line is not None and self.location is not None:
            parts.append(self.source_line)
            padding = " " * (self.location.column - 1)
            parts.append(f"{padding}^ {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if include_hint and self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


# =============================================================================
# Lexical Errors
# =============================================================================

class LexError(CompilerError):
    """
    A character sequence matches no token production.

    Examples:
        - Unsupported punctuation such as '@' or '%'
        - A number literal that does not fit in 32 bits
    """
    pass


class InvalidCharacterError(LexError):
    """Unexpected character in the source."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character '{char}'",
            location=location,
            hint="supported punctuators are + - * / ( ) < > = ; { }",
            source_line=source_line,
        )


# =============================================================================
# Syntax Errors
# =============================================================================

class ParseError(CompilerError):
    """
    The current token does not satisfy the grammar production being matched.

    Examples:
        - Missing ')' or '}' or ';'
        - A number or operator where an expression was expected
        - Assignment to something that is not a variable
    """
    pass


class UnexpectedTokenError(ParseError):
    """Token found where a different construct was expected."""

    def __init__(
        self,
        found: str,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.found = found
        self.expected = expected
        super().__init__(
            f"expected {expected}",
            location=location,
            hint=f"found '{found}'" if found else "found end of input",
            source_line=source_line,
        )


class MissingTokenError(ParseError):
    """Required punctuator not found where expected."""

    def __init__(
        self,
        expected: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.expected = expected
        super().__init__(
            f"expected '{expected}'",
            location=location,
            source_line=source_line,
        )


class InvalidLValueError(ParseError):
    """
    Invalid left-hand side of assignment.

    Only variables denote storage in this language:
        1 = x        // literal
        (a + b) = x  // expression result
    """

    def __init__(
        self,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            "not an lvalue",
            location=location,
            hint="left side of '=' must be a variable",
            source_line=source_line,
        )


class NestingTooDeepError(ParseError):
    """
    Parentheses, unary operators, assignments or statements nest deeper
    than the parser supports.
    """

    def __init__(
        self,
        max_depth: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.max_depth = max_depth
        super().__init__(
            "nested too deeply",
            location=location,
            hint=f"at most {max_depth} levels of nesting are supported",
            source_line=source_line,
        )


# =============================================================================
# Internal Errors
# =============================================================================

class InternalCompilerError(Exception):
    """
    Defect in the compiler itself.

    Raised by the code generator when it meets a node it cannot handle or
    when its stack bookkeeping is unbalanced at a statement boundary. Kept
    outside the CompilerError hierarchy so it is never reported as a
    problem with the user's program.
    """
    pass
