"""
calc-ir Error Hierarchy
=======================

This module defines the exception hierarchy for the expression compiler,
together with the small result type the parser and code generator use to
report failures without raising.

Exception Hierarchy
-------------------
CalcError (base)
├── CalcSyntaxError - lexer and parser errors
│   ├── InvalidCharacterError - alphabetic input (no identifiers allowed)
│   ├── UnexpectedTokenError - token cannot start an expression
│   ├── MissingTokenError - required token (e.g. ')') not found
│   └── NestingTooDeepError - parentheses nested beyond the limit
└── CodeGenError - translation errors
    ├── InvalidOperatorError - operator with no instruction mapping
    └── VerificationError - backend rejected the generated function

Failure Propagation
-------------------
The parser and code generator never raise these errors. Each entry point
returns either ``Ok(value)`` or ``Err(error)``; callers check the result and
return early on failure. Errors only become exceptions at the convenience
boundary (``Err.unwrap()``), for callers that prefer try/except:

    result = parser.parse_top_level_expr()
    if isinstance(result, Err):
        print(result.error)
        return
    definition = result.value

Error Message Format
--------------------
Tokens carry no position information, so messages are context-free:

    error: expected ')'
    hint: every '(' needs a matching ')'
"""

from dataclasses import dataclass
from typing import Generic, NoReturn, Optional, TypeVar, Union


T = TypeVar("T")


# =============================================================================
# Base Exception Class
# =============================================================================

class CalcError(Exception):
    """
    Base exception for all calc-ir errors.

    Attributes:
        message: The error description
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        self.message = message
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format as 'error: message' with an optional hint line."""
        parts = [f"error: {self.message}"]
        if self.hint:
            parts.append(f"hint: {self.hint}")
        return "\n".join(parts)


class CalcCompilationError(CalcError):
    """
    Aggregate error wrapping a pre-formatted report from ErrorCollector.
    """

    def _format_message(self) -> str:
        return self.message


# =============================================================================
# Syntax Errors (Lexer and Parser)
# =============================================================================

class CalcSyntaxError(CalcError):
    """
    Syntax error in the input text.

    Raised (or carried in an Err) when the input cannot be tokenized or
    does not match the expression grammar.
    """
    pass


class InvalidCharacterError(CalcSyntaxError):
    """
    Alphabetic input where only numbers and operators are allowed.

    The language has no identifiers. The lexer consumes the whole
    alphanumeric run and hands back an ERROR token carrying it.
    """

    def __init__(self, text: Optional[str] = None):
        self.text = text
        hint = f"remove '{text}'" if text else None
        super().__init__(
            "only numeric literals and operators are permitted",
            hint=hint,
        )


class UnexpectedTokenError(CalcSyntaxError):
    """
    Token that cannot start an expression.
    """

    def __init__(self, found: Optional[str] = None):
        self.found = found
        hint = f"found '{found}'" if found else None
        super().__init__(
            "unexpected token when expecting an expression",
            hint=hint,
        )


class MissingTokenError(CalcSyntaxError):
    """
    Required token is missing.

    Raised when a required token (such as ')') is not found where
    expected.
    """

    def __init__(self, expected: str, hint: Optional[str] = None):
        self.expected = expected
        super().__init__(f"expected '{expected}'", hint=hint)


class NestingTooDeepError(CalcSyntaxError):
    """
    Parentheses nested beyond the parser's limit.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            "expression nested too deeply",
            hint=f"at most {limit} levels of parentheses are allowed",
        )


# =============================================================================
# Code Generation Errors
# =============================================================================

class CodeGenError(CalcError):
    """
    Error during translation of the AST into backend instructions.
    """
    pass


class InvalidOperatorError(CodeGenError):
    """
    Binary operator with no instruction mapping.

    The parser only builds nodes for operators in the precedence table, so
    this is reached by hand-built trees.
    """

    def __init__(self, operator: object):
        self.operator = operator
        super().__init__("invalid binary operator", hint=f"got {operator!r}")


class VerificationError(CodeGenError):
    """
    The backend reported the generated function as malformed.

    Attributes:
        function_name: Name of the rejected function
        diagnostic: The backend's verifier output
    """

    def __init__(self, function_name: str, diagnostic: str):
        self.function_name = function_name
        self.diagnostic = diagnostic
        super().__init__(
            f"function '{function_name}' failed verification",
            hint=diagnostic.strip() or None,
        )


# =============================================================================
# Result Type
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""
    value: T

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed result carrying the error that explains it."""
    error: CalcError

    def unwrap(self) -> NoReturn:
        """Raise the carried error."""
        raise self.error


Result = Union[Ok[T], Err]


# =============================================================================
# Error Collection (for multi-error reporting)
# =============================================================================

class ErrorCollector:
    """
    Collects errors reported while the driver loop keeps going.

    Every error in this compiler is recoverable, so the driver records it,
    reports it, and resynchronizes. The collector keeps the full list for
    the final summary.

    Example:
        collector = ErrorCollector()
        collector.add(MissingTokenError(")"))
        if collector.has_errors():
            print(collector.report())
    """

    def __init__(self):
        self.errors: list[CalcError] = []

    def add(self, error: CalcError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def has_errors(self) -> bool:
        """Return True if any errors have been collected."""
        return len(self.errors) > 0

    def error_count(self) -> int:
        """Return the number of collected errors."""
        return len(self.errors)

    def report(self) -> str:
        """Format all errors for display."""
        lines = []
        for error in self.errors:
            lines.append(str(error))
            lines.append("")

        error_word = "error" if len(self.errors) == 1 else "errors"
        lines.append(f"{len(self.errors)} {error_word}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors."""
        self.errors.clear()

    def raise_if_errors(self) -> None:
        """Raise a CalcCompilationError if any errors were collected."""
        if self.has_errors():
            raise CalcCompilationError(self.report())
