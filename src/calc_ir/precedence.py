"""
Binary Operator Precedence Table
================================

Maps each binary operator to its binding strength. Higher numbers bind
more tightly. The parser consults the table for the current token before
deciding whether to extend an expression.

Default Precedence (lowest to highest)
--------------------------------------
| Level | Operators | Kind           |
|-------|-----------|----------------|
| 10    | < > =     | comparison     |
| 20    | + -       | additive       |
| 40    | * /       | multiplicative |

A token that is not a supported operator, an operator with no entry, or an
operator stored with a non-positive value all look up as NO_PRECEDENCE (-1).
That is below the parser's minimum binding power of 0, so such a token always
ends an expression.
"""

from calc_ir.ast import BinaryOperator
from calc_ir.lexer import Token, TokenType


# Returned for anything that is not a usable binary operator
NO_PRECEDENCE = -1

DEFAULT_PRECEDENCE: dict[BinaryOperator, int] = {
    BinaryOperator.LESS: 10,
    BinaryOperator.GREATER: 10,
    BinaryOperator.EQUAL: 10,
    BinaryOperator.ADD: 20,
    BinaryOperator.SUBTRACT: 20,
    BinaryOperator.MULTIPLY: 40,
    BinaryOperator.DIVIDE: 40,
}


class PrecedenceTable:
    """
    Operator precedence lookup.

    The table is populated once, before parsing starts, and only read
    afterwards.

    Example:
        table = PrecedenceTable.default()
        table.lookup(BinaryOperator.MULTIPLY)   # 40
    """

    def __init__(self, entries: dict[BinaryOperator, int] | None = None):
        self._precedence: dict[BinaryOperator, int] = {}
        for operator, precedence in (entries or {}).items():
            self.define(operator, precedence)

    @classmethod
    def default(cls) -> "PrecedenceTable":
        """Create a table holding the standard operator set."""
        return cls(DEFAULT_PRECEDENCE)

    def define(self, operator: BinaryOperator, precedence: int) -> None:
        """
        Set the precedence of an operator.

        A non-positive precedence keeps the entry but makes the operator
        unusable at expression level.
        """
        if not isinstance(operator, BinaryOperator):
            raise TypeError(f"expected BinaryOperator, got {operator!r}")
        self._precedence[operator] = precedence

    def lookup(self, operator: BinaryOperator | None) -> int:
        """Return the operator's precedence, or NO_PRECEDENCE."""
        precedence = self._precedence.get(operator, NO_PRECEDENCE)
        if precedence <= 0:
            return NO_PRECEDENCE
        return precedence

    def precedence_of(self, token: Token) -> int:
        """Return the precedence of ``token`` as a binary operator."""
        if token.type != TokenType.CHAR:
            return NO_PRECEDENCE
        return self.lookup(BinaryOperator.from_symbol(token.value))

    def __contains__(self, operator: BinaryOperator) -> bool:
        return self.lookup(operator) != NO_PRECEDENCE

    def __len__(self) -> int:
        return len(self._precedence)
