"""
Abstract Syntax Tree (AST) Definitions
======================================

This module defines the AST produced by the parser and consumed by the
code generator.

Node Set
--------
Expression (closed union)
├── NumberLiteral - floating-point constant
└── BinaryExpression - operator applied to two owned sub-expressions

Function wrappers
├── Prototype - function name plus parameter names
└── FunctionDefinition - prototype plus body expression

Design Notes
------------
- All nodes are frozen dataclasses; the tree is immutable after parsing
- The expression set is closed, so consumers dispatch on the concrete node
  type with isinstance rather than through methods on the nodes
- Every node is owned by exactly one parent; trees are finite and acyclic
- Every top-level input is wrapped in a zero-parameter FunctionDefinition
  named ANONYMOUS_FUNCTION_NAME so it translates like any other function
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# Name given to the wrapper function of each top-level expression
ANONYMOUS_FUNCTION_NAME = "__anon_expr"


# =============================================================================
# Operator Enumeration
# =============================================================================

class BinaryOperator(Enum):
    """Binary operators the language supports, keyed by their symbol."""
    # Arithmetic
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"

    # Comparison (result is 0.0 or 1.0)
    LESS = "<"
    GREATER = ">"
    EQUAL = "="

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def is_comparison(self) -> bool:
        return self in (BinaryOperator.LESS, BinaryOperator.GREATER, BinaryOperator.EQUAL)

    @classmethod
    def from_symbol(cls, symbol: str) -> Optional["BinaryOperator"]:
        """Return the operator for ``symbol``, or None if unsupported."""
        try:
            return cls(symbol)
        except ValueError:
            return None


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True)
class NumberLiteral:
    """
    Numeric literal like ``1.0``.

    Attributes:
        value: The literal's value
    """
    value: float


@dataclass(frozen=True)
class BinaryExpression:
    """
    Binary operation.

    Attributes:
        operator: The operator
        left: Left operand (owned)
        right: Right operand (owned)
    """
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"


Expression = Union[NumberLiteral, BinaryExpression]


# =============================================================================
# Function Wrappers
# =============================================================================

@dataclass(frozen=True)
class Prototype:
    """
    Function signature: a name and its parameter names.

    Parameter names are not checked for duplicates here.
    """
    name: str
    params: tuple[str, ...] = field(default_factory=tuple)

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class FunctionDefinition:
    """Function with a prototype and a single-expression body."""
    prototype: Prototype
    body: Expression


# =============================================================================
# AST Printer (Debugging)
# =============================================================================

def format_expression(node: Expression) -> str:
    """Render an expression fully parenthesized, e.g. ``((8 - 3) - 2)``."""
    parts: list[str] = []
    # Strings are literal output; nodes are expanded in place
    pending: list[str | Expression] = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, NumberLiteral):
            parts.append(f"{item.value:g}")
        elif isinstance(item, BinaryExpression):
            pending.extend([")", item.right, f" {item.operator.symbol} ", item.left, "("])
        else:
            raise TypeError(f"not an expression node: {type(item).__name__}")
    return "".join(parts)


class ASTPrinter:
    """
    Pretty printer for AST debugging.

    Produces an indented tree, one node per line. The walk uses an explicit
    stack, so arbitrarily long operator chains print without recursion.

    Usage:
        printer = ASTPrinter()
        output = printer.print(definition)
        print(output)
    """

    def __init__(self):
        self.output: list[str] = []

    def print(self, node: FunctionDefinition | Prototype | Expression) -> str:
        """Print the AST and return as string."""
        self.output = []
        pending = [(node, 0)]
        while pending:
            current, level = pending.pop()
            self._visit(current, level, pending)
        return "\n".join(self.output)

    def _emit(self, text: str, level: int) -> None:
        """Emit a line at the given indentation level."""
        indent = "  " * level
        self.output.append(f"{indent}{text}")

    def _visit(self, node, level: int, pending: list) -> None:
        # Children are pushed in reverse so they print in order
        if isinstance(node, FunctionDefinition):
            pending.append((node.body, level + 1))
            pending.append((node.prototype, level))
        elif isinstance(node, Prototype):
            self._emit(f"Function: {node.name}({', '.join(node.params)})", level)
        elif isinstance(node, BinaryExpression):
            self._emit(f"Binary: {node.operator.symbol}", level)
            pending.append((node.right, level + 1))
            pending.append((node.left, level + 1))
        elif isinstance(node, NumberLiteral):
            self._emit(f"Number: {node.value:g}", level)
        else:
            raise TypeError(f"not an AST node: {type(node).__name__}")
