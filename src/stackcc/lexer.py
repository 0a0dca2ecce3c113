"""
stackcc Lexer (Tokenizer)
=========================

This module converts source text into a list of tokens for the parser.

Token Categories
----------------
- Keywords: return, if, else, for, while
- Identifiers: [A-Za-z_][A-Za-z0-9_]*
- Numbers: decimal literals that fit in a 32-bit signed integer
- Punctuators: == != <= >= + - * / ( ) < > = ; { }

Keywords are recognized in a second pass: the scanner produces identifier
tokens for every word, then reserved words are promoted to KEYWORD.

Example Usage
-------------
>>> from stackcc.lexer import tokenize
>>> for token in tokenize("{ return 42; }"):
...     print(token)
Token(PUNCTUATOR, '{', 0)
Token(KEYWORD, 'return', 2)
Token(NUMBER, 42, 9)
Token(PUNCTUATOR, ';', 11)
Token(PUNCTUATOR, '}', 13)
Token(EOF, 14)
"""

import dataclasses
import logging
import string
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from stackcc.errors import (
    SourceLocation,
    LexError,
    InvalidCharacterError,
    source_line_at,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenKind(Enum):
    """Lexical categories produced by the lexer."""
    IDENTIFIER = auto()     # Variable names
    KEYWORD = auto()        # Reserved words
    PUNCTUATOR = auto()     # Operators and delimiters
    NUMBER = auto()         # Integer literals
    EOF = auto()            # End of input


# Reserved words promoted from IDENTIFIER to KEYWORD after scanning
KEYWORDS = frozenset({"return", "if", "else", "for", "while"})

# Multi-character punctuators are tried before single characters
MULTI_CHAR_PUNCTUATORS = ("==", "!=", "<=", ">=")

SINGLE_CHAR_PUNCTUATORS = frozenset("+-*/()<>=;{}")

INT32_MAX = 2**31 - 1


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexical unit.

    Attributes:
        kind: The TokenKind classification
        text: The lexeme as it appears in the source
        offset: Character offset of the first character in the source
        value: Integer value (NUMBER tokens only)
        source: The complete source text, for diagnostics
    """
    kind: TokenKind
    text: str
    offset: int
    value: Optional[int] = None
    source: str = dataclasses.field(default="", repr=False, compare=False)

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.kind == TokenKind.EOF:
            return f"Token(EOF, {self.offset})"
        if self.kind == TokenKind.NUMBER:
            return f"Token(NUMBER, {self.value}, {self.offset})"
        return f"Token({self.kind.name}, {self.text!r}, {self.offset})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation.from_offset(self.source, self.offset)

    @property
    def source_line(self) -> str:
        """The line of source containing this token."""
        return source_line_at(self.source, self.offset)

    def is_punctuator(self, text: str) -> bool:
        """Return True if this is the punctuator spelled text."""
        return self.kind == TokenKind.PUNCTUATOR and self.text == text

    def is_keyword(self, text: str) -> bool:
        """Return True if this is the keyword spelled text."""
        return self.kind == TokenKind.KEYWORD and self.text == text


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes stackcc source code.

    Usage:
        lexer = Lexer(source_text)
        tokens = lexer.tokenize()

    Attributes:
        source: The source code being tokenized
    """

    # Characters that can start an identifier
    IDENT_START = string.ascii_letters + "_"

    # Characters that can continue an identifier
    IDENT_CHARS = string.ascii_letters + string.digits + "_"

    def __init__(self, source: str):
        self.source = source
        self._pos = 0

    def tokenize(self) -> list[Token]:
        """
        Scan the whole source.

        Returns:
            Tokens in source order, terminated by exactly one EOF token

        Raises:
            LexError: If a character matches no token production
        """
        self._pos = 0
        tokens = []

        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            tokens.append(self._scan_token())

        tokens.append(self._make_token(TokenKind.EOF, "", len(self.source)))
        tokens = self._convert_keywords(tokens)

        logger.debug("Tokenized %d tokens", len(tokens))
        return tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Character at current position + offset, or '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self._pos += 1

    def _make_token(
        self,
        kind: TokenKind,
        text: str,
        offset: int,
        value: Optional[int] = None,
    ) -> Token:
        return Token(kind=kind, text=text, offset=offset, value=value, source=self.source)

    def _location(self, offset: int) -> SourceLocation:
        return SourceLocation.from_offset(self.source, offset)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_token(self) -> Token:
        """Scan the token starting at the current position."""
        char = self._peek()

        if char in string.digits:
            return self._scan_number()

        if char in self.IDENT_START:
            return self._scan_identifier()

        return self._scan_punctuator()

    def _scan_number(self) -> Token:
        """Scan a maximal run of decimal digits."""
        start = self._pos
        while self._peek() and self._peek() in string.digits:
            self._pos += 1

        text = self.source[start:self._pos]
        value = int(text)
        if value > INT32_MAX:
            raise LexError(
                "number literal out of range",
                self._location(start),
                hint=f"the largest supported literal is {INT32_MAX}",
                source_line=source_line_at(self.source, start),
            )

        return self._make_token(TokenKind.NUMBER, text, start, value)

    def _scan_identifier(self) -> Token:
        start = self._pos
        while self._peek() and self._peek() in self.IDENT_CHARS:
            self._pos += 1
        return self._make_token(TokenKind.IDENTIFIER, self.source[start:self._pos], start)

    def _scan_punctuator(self) -> Token:
        """
        Scan an operator or delimiter.

        Raises:
            InvalidCharacterError: If the character is not a supported punctuator
        """
        start = self._pos

        for punct in MULTI_CHAR_PUNCTUATORS:
            if self.source.startswith(punct, start):
                self._pos += len(punct)
                return self._make_token(TokenKind.PUNCTUATOR, punct, start)

        char = self._peek()
        if char in SINGLE_CHAR_PUNCTUATORS:
            self._pos += 1
            return self._make_token(TokenKind.PUNCTUATOR, char, start)

        raise InvalidCharacterError(
            char,
            self._location(start),
            source_line_at(self.source, start),
        )

    # =========================================================================
    # Keyword Promotion
    # =========================================================================

    @staticmethod
    def _convert_keywords(tokens: list[Token]) -> list[Token]:
        """Reclassify identifier tokens spelled like reserved words."""
        return [
            dataclasses.replace(token, kind=TokenKind.KEYWORD)
            if token.kind == TokenKind.IDENTIFIER and token.text in KEYWORDS
            else token
            for token in tokens
        ]


# =============================================================================
# Convenience Functions
# =============================================================================

def tokenize(source: str) -> list[Token]:
    """Tokenize source text. See Lexer.tokenize."""
    return Lexer(source).tokenize()
