"""
Expression Lexer (Tokenizer)
============================

This module implements the lexer for the calculator language. It reads a
character stream one character at a time and turns it into tokens for the
parser.

Token Categories
----------------
- NUMBER: a run of digits and decimal points, e.g. ``42``, ``3.5``, ``.25``
- CHAR: any other single non-whitespace character (operators, parentheses,
  the ``;`` separator)
- ERROR: a rejected run of alphanumeric characters (the language has no
  identifiers)
- EOF: end of input

Number Conversion
-----------------
Number text is converted permissively: the longest prefix that forms a valid
decimal is used and the rest of the run is dropped, so malformed text never
fails.

| Text    | Value |
|---------|-------|
| ``42``  | 42.0  |
| ``.5``  | 0.5   |
| ``1.``  | 1.0   |
| ``1.2.3`` | 1.2 |
| ``.``   | 0.0   |

Example Usage
-------------
>>> from calc_ir.lexer import Lexer
>>> for token in Lexer.from_string("(1 + 2.5) * 4").tokenize():
...     print(token)
Token(CHAR, '(')
Token(NUMBER, 1.0)
Token(CHAR, '+')
Token(NUMBER, 2.5)
Token(CHAR, ')')
Token(CHAR, '*')
Token(NUMBER, 4.0)
Token(EOF)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, TextIO
import io
import logging
import re
import string


logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types produced by the lexer."""
    EOF = auto()        # End of input
    ERROR = auto()      # Rejected alphanumeric run
    NUMBER = auto()     # Numeric literal
    CHAR = auto()       # Single raw character


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token.

    Attributes:
        type: The TokenType classification
        value: float for NUMBER, the character for CHAR, the rejected text
               for ERROR, None for EOF
    """
    type: TokenType
    value: float | str | None = None

    def __repr__(self) -> str:
        """Format token for debugging output."""
        if self.value is None:
            return f"Token({self.type.name})"
        return f"Token({self.type.name}, {self.value!r})"

    def is_char(self, char: str) -> bool:
        """Return True if this is the CHAR token for ``char``."""
        return self.type == TokenType.CHAR and self.value == char


# =============================================================================
# Number Conversion
# =============================================================================

# Longest decimal prefix of a [0-9.]+ run
_NUMBER_PREFIX = re.compile(r"[0-9]+\.?[0-9]*|\.[0-9]+")


def parse_number(text: str) -> float:
    """
    Convert number text to a float, using its longest valid prefix.

    Returns 0.0 when no prefix is a valid number (e.g. ``"."``).
    """
    match = _NUMBER_PREFIX.match(text)
    if match is None:
        return 0.0
    return float(match.group())


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes a character stream.

    The lexer keeps one character of pushback: the last character read from
    the stream that has not yet been classified. It starts as a space so the
    first call reads from the stream.

    Usage:
        lexer = Lexer(sys.stdin)
        token = lexer.next_token()

    Attributes:
        stream: The text stream being read
    """

    # Characters that start a rejected identifier-like run
    IDENT_START = string.ascii_letters

    # Characters that continue it
    IDENT_CHARS = string.ascii_letters + string.digits

    # Characters of a numeric literal
    NUMBER_CHARS = string.digits + "."

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._last_char = " "

    @classmethod
    def from_string(cls, text: str) -> "Lexer":
        """Create a lexer reading from a string."""
        return cls(io.StringIO(text))

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens until end of input.

        Yields:
            Token objects, always ending with an EOF token
        """
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    # =========================================================================
    # Character Access
    # =========================================================================

    def _read(self) -> str:
        """Read the next character; empty string at end of input."""
        return self.stream.read(1)

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def next_token(self) -> Token:
        """Scan and return the next token."""
        while self._last_char.isspace():
            self._last_char = self._read()

        # End of input: keep the empty pushback so EOF repeats
        if self._last_char == "":
            return Token(TokenType.EOF)

        # Identifiers are not part of the language: swallow the whole run
        if self._last_char in self.IDENT_START:
            chars = [self._last_char]
            self._last_char = self._read()
            while self._last_char and self._last_char in self.IDENT_CHARS:
                chars.append(self._last_char)
                self._last_char = self._read()
            text = "".join(chars)
            logger.debug(f"Rejected alphanumeric run {text!r}")
            return Token(TokenType.ERROR, text)

        if self._last_char in self.NUMBER_CHARS:
            chars = []
            while self._last_char and self._last_char in self.NUMBER_CHARS:
                chars.append(self._last_char)
                self._last_char = self._read()
            return Token(TokenType.NUMBER, parse_number("".join(chars)))

        char = self._last_char
        self._last_char = self._read()
        return Token(TokenType.CHAR, char)
