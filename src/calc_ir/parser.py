"""
Expression Parser
=================

This module implements a recursive descent parser with precedence climbing
for binary operators. It pulls tokens from the lexer one at a time and
builds the AST.

Grammar
-------
toplevelexpr    ::= expression
expression      ::= primary binoprhs
binoprhs        ::= (binop primary)*
primary         ::= numberexpr | parenexpr
numberexpr      ::= NUMBER
parenexpr       ::= '(' expression ')'

Precedence Climbing
-------------------
Instead of one grammar rule per precedence level, ``binoprhs`` is driven by
the PrecedenceTable. ``parse_bin_op_rhs(min_precedence, lhs)`` keeps
absorbing ``binop primary`` pairs while the operator binds at least as
tightly as ``min_precedence``. If the operator after a right-hand side binds
more tightly than the one just consumed, that right-hand side is extended
first by a recursive call. This makes equal-precedence chains left-associative
and lets tighter operators group first:

    8 - 3 - 2      =>  ((8 - 3) - 2)
    2 + 3 * 4      =>  (2 + (3 * 4))

Failure Handling
----------------
No parse method raises. Each returns ``Ok(node)`` or ``Err(error)`` and
callers return early on ``Err``. Tokens consumed before the failure stay
consumed; the driver loop resynchronizes. Parentheses nest at most
MAX_NESTING_DEPTH levels; deeper input fails with NestingTooDeepError.

Example Usage
-------------
>>> from calc_ir.lexer import Lexer
>>> from calc_ir.parser import Parser
>>> from calc_ir.ast import format_expression
>>> parser = Parser(Lexer.from_string("2 + 3 * 4"))
>>> _ = parser.next_token()
>>> result = parser.parse_top_level_expr()
>>> format_expression(result.value.body)
'(2 + (3 * 4))'
"""

from typing import Optional
import logging

from calc_ir.lexer import Lexer, Token, TokenType
from calc_ir.precedence import PrecedenceTable
from calc_ir.ast import (
    ANONYMOUS_FUNCTION_NAME,
    BinaryExpression,
    BinaryOperator,
    Expression,
    FunctionDefinition,
    NumberLiteral,
    Prototype,
)
from calc_ir.errors import (
    Err,
    InvalidCharacterError,
    MissingTokenError,
    NestingTooDeepError,
    Ok,
    Result,
    UnexpectedTokenError,
)


logger = logging.getLogger(__name__)


class Parser:
    """
    Precedence-climbing parser over a lexer.

    The parser keeps a single ``current`` token. Call ``next_token()`` once
    to prime it before parsing; the driver loop does this.

    Attributes:
        lexer: Token source
        precedence: Binary operator precedence table
        current: The token being examined
    """

    # A parenthesis level costs up to ten Python frames with a table of
    # seven distinct precedences; stay inside the default recursion limit
    MAX_NESTING_DEPTH = 64

    def __init__(self, lexer: Lexer, precedence: Optional[PrecedenceTable] = None):
        self.lexer = lexer
        self.precedence = precedence if precedence is not None else PrecedenceTable.default()
        self.current: Token = Token(TokenType.EOF)
        self._depth = 0

    # =========================================================================
    # Token Access
    # =========================================================================

    def next_token(self) -> Token:
        """Read the next token into ``current`` and return it."""
        self.current = self.lexer.next_token()
        return self.current

    def _current_precedence(self) -> int:
        return self.precedence.precedence_of(self.current)

    # =========================================================================
    # Primary Expressions
    # =========================================================================

    def parse_number_expr(self) -> Result[Expression]:
        """numberexpr ::= NUMBER"""
        node = NumberLiteral(self.current.value)
        self.next_token()
        return Ok(node)

    def parse_paren_expr(self) -> Result[Expression]:
        """parenexpr ::= '(' expression ')'"""
        if self._depth >= self.MAX_NESTING_DEPTH:
            return Err(NestingTooDeepError(self.MAX_NESTING_DEPTH))

        self.next_token()  # consume '('
        self._depth += 1
        try:
            inner = self.parse_expression()
        finally:
            self._depth -= 1
        if isinstance(inner, Err):
            return inner

        if not self.current.is_char(")"):
            return Err(MissingTokenError(")", hint="every '(' needs a matching ')'"))
        self.next_token()  # consume ')'
        return inner

    def parse_primary(self) -> Result[Expression]:
        """primary ::= numberexpr | parenexpr"""
        token = self.current

        if token.type == TokenType.NUMBER:
            return self.parse_number_expr()

        if token.is_char("("):
            return self.parse_paren_expr()

        if token.type == TokenType.ERROR:
            return Err(InvalidCharacterError(token.value))

        found = token.value if token.type == TokenType.CHAR else token.type.name
        return Err(UnexpectedTokenError(found))

    # =========================================================================
    # Binary Operators
    # =========================================================================

    def parse_bin_op_rhs(self, min_precedence: int, lhs: Expression) -> Result[Expression]:
        """
        binoprhs ::= (binop primary)*

        Args:
            min_precedence: Weakest operator this call may absorb
            lhs: Expression parsed so far

        Returns:
            Ok with the extended expression (``lhs`` itself when the current
            token binds too weakly), or Err
        """
        while True:
            token_precedence = self._current_precedence()

            # Binds less tightly than required: done
            if token_precedence < min_precedence:
                return Ok(lhs)

            operator = BinaryOperator.from_symbol(self.current.value)
            self.next_token()  # consume operator

            rhs = self.parse_primary()
            if isinstance(rhs, Err):
                return rhs

            # Next operator binds tighter: let it take rhs as its lhs
            next_precedence = self._current_precedence()
            if token_precedence < next_precedence:
                rhs = self.parse_bin_op_rhs(token_precedence + 1, rhs.value)
                if isinstance(rhs, Err):
                    return rhs

            lhs = BinaryExpression(operator, lhs, rhs.value)

    def parse_expression(self) -> Result[Expression]:
        """expression ::= primary binoprhs"""
        lhs = self.parse_primary()
        if isinstance(lhs, Err):
            return lhs
        return self.parse_bin_op_rhs(0, lhs.value)

    # =========================================================================
    # Top Level
    # =========================================================================

    def parse_top_level_expr(self) -> Result[FunctionDefinition]:
        """toplevelexpr ::= expression, wrapped as an anonymous function"""
        body = self.parse_expression()
        if isinstance(body, Err):
            logger.debug(f"Top-level parse failed: {body.error.message}")
            return body
        prototype = Prototype(ANONYMOUS_FUNCTION_NAME, ())
        return Ok(FunctionDefinition(prototype, body.value))


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(source: str, precedence: Optional[PrecedenceTable] = None) -> FunctionDefinition:
    """
    Parse one top-level expression from a string.

    Args:
        source: Expression text
        precedence: Operator table (default table if None)

    Returns:
        The anonymous FunctionDefinition wrapping the expression

    Raises:
        CalcSyntaxError: If parsing fails
    """
    parser = Parser(Lexer.from_string(source), precedence)
    parser.next_token()
    return parser.parse_top_level_expr().unwrap()
