"""
Code Generator
==============

This module translates the AST into backend instructions. It walks each
expression tree depth-first, left operand before right, and issues one
backend call per node, threading the values each call returns into the
instruction that consumes them.

Translation Rules
-----------------
| Node               | Emitted                                          |
|--------------------|--------------------------------------------------|
| NumberLiteral      | constant                                         |
| BinaryExpression   | left, right, then the operator's instruction     |
| comparison (< > =) | fcmp (unordered) then bool-to-float (0.0 / 1.0)  |
| Prototype          | function declaration (reused if already present) |
| FunctionDefinition | entry block, body, return, verification          |

Failure Handling
----------------
Every generate_* method returns ``Ok`` or ``Err`` and never raises. If an
operand fails, the operator instruction is not emitted. If a function body
fails, or the backend's verifier rejects the function, the function is
removed from the unit so no partial artifact survives.

Usage
-----
>>> from calc_ir.parser import parse_source
>>> from calc_ir.backend import LLVMBackend
>>> from calc_ir.codegen import CodeGenerator
>>> backend = LLVMBackend()
>>> result = CodeGenerator(backend).generate_function(parse_source("1 + 2"))
>>> print(backend.print_function(result.value))
"""

from typing import Any, Optional
import logging

from calc_ir.ast import (
    BinaryExpression,
    BinaryOperator,
    Expression,
    FunctionDefinition,
    NumberLiteral,
    Prototype,
)
from calc_ir.backend import Backend, LLVMBackend, Opcode
from calc_ir.errors import (
    CodeGenError,
    Err,
    InvalidOperatorError,
    Ok,
    Result,
    VerificationError,
)


logger = logging.getLogger(__name__)


# Instruction for each operator; comparisons are widened to double afterwards
OPERATOR_OPCODES: dict[BinaryOperator, Opcode] = {
    BinaryOperator.ADD: Opcode.FADD,
    BinaryOperator.SUBTRACT: Opcode.FSUB,
    BinaryOperator.MULTIPLY: Opcode.FMUL,
    BinaryOperator.DIVIDE: Opcode.FDIV,
    BinaryOperator.LESS: Opcode.FCMP_ULT,
    BinaryOperator.GREATER: Opcode.FCMP_UGT,
    BinaryOperator.EQUAL: Opcode.FCMP_UEQ,
}



def check_operator_coverage(opcodes: dict[BinaryOperator, Opcode]) -> None:
    """Raise RuntimeError unless every BinaryOperator has an opcode."""
    missing = set(BinaryOperator) - set(opcodes)
    if missing:
        names = ", ".join(sorted(operator.name for operator in missing))
        raise RuntimeError(f"operator without an opcode: {names}")


check_operator_coverage(OPERATOR_OPCODES)


class CodeGenerator:
    """
    Translates AST nodes through a Backend.

    The backend is passed in rather than looked up globally, so tests can
    substitute a recording backend.

    Attributes:
        backend: Receives every emission call
        verify: Run the backend verifier on each completed function
    """

    def __init__(self, backend: Optional[Backend] = None, verify: bool = True):
        self.backend = backend if backend is not None else LLVMBackend()
        self.verify = verify

        # Parameter name -> backend argument, for the function being translated
        self._named_values: dict[str, Any] = {}

    @property
    def named_values(self) -> dict[str, Any]:
        """Parameter bindings of the current (or last) function translation."""
        return dict(self._named_values)

    # =========================================================================
    # Expressions
    # =========================================================================

    def generate_expression(self, node: Expression) -> Result[Any]:
        """
        Translate an expression tree; returns the value holding its result.

        The tree is walked post-order with an explicit work stack, so
        chains of any length translate without deep Python recursion.
        Each stack entry is a node plus a flag telling whether its operands
        have already been emitted; their values wait on ``values``.
        """
        values: list[Any] = []
        pending: list[tuple[Expression, bool]] = [(node, False)]

        while pending:
            current, operands_ready = pending.pop()

            if isinstance(current, NumberLiteral):
                values.append(self.backend.emit_constant(current.value))
            elif isinstance(current, BinaryExpression):
                if not operands_ready:
                    # Popped in reverse: left, then right, then the operator
                    pending.append((current, True))
                    pending.append((current.right, False))
                    pending.append((current.left, False))
                    continue
                right = values.pop()
                left = values.pop()
                emitted = self._emit_operator(current, left, right)
                if isinstance(emitted, Err):
                    return emitted
                values.append(emitted.value)
            else:
                return Err(CodeGenError(f"cannot translate {type(current).__name__}"))

        return Ok(values.pop())

    def _emit_operator(self, node: BinaryExpression, left: Any, right: Any) -> Result[Any]:
        if not isinstance(node.operator, BinaryOperator):
            return Err(InvalidOperatorError(node.operator))
        opcode = OPERATOR_OPCODES[node.operator]

        value = self.backend.emit_binary(opcode, left, right)
        if node.operator.is_comparison:
            # No boolean type in the language: map to 0.0 / 1.0
            value = self.backend.emit_bool_to_float(value)
        return Ok(value)

    # =========================================================================
    # Functions
    # =========================================================================

    def generate_prototype(self, prototype: Prototype) -> Result[Any]:
        """Declare the function, or reuse one already declared under its name."""
        existing = self.backend.get_function(prototype.name)
        if existing is not None:
            return Ok(existing)
        return Ok(self.backend.declare_function(prototype.name, prototype.params))

    def generate_function(self, definition: FunctionDefinition) -> Result[Any]:
        """
        Translate a function definition.

        Returns:
            Ok with the backend function, or Err; on Err the function is no
            longer in the backend's unit
        """
        declared = self.generate_prototype(definition.prototype)
        if isinstance(declared, Err):
            return declared
        function = declared.value

        self.backend.begin_function_body(function)

        self._named_values.clear()
        arguments = self.backend.function_arguments(function)
        for name, argument in zip(definition.prototype.params, arguments):
            self._named_values[name] = argument

        body = self.generate_expression(definition.body)
        if isinstance(body, Err):
            self.backend.remove_function(function)
            return body

        self.backend.emit_return(body.value)

        diagnostic = self.backend.verify_function(function) if self.verify else None
        if diagnostic is not None:
            self.backend.remove_function(function)
            return Err(VerificationError(definition.prototype.name, diagnostic))

        logger.debug(f"Generated function '{definition.prototype.name}'")
        return Ok(function)
