"""
IR Emission Backend
===================

The code generator never builds IR objects itself. It drives a Backend,
which owns the program unit, allocates functions and instructions, verifies
them and prints them. This module defines that interface and the
implementation built on llvmlite.

Backend Interface
-----------------
| Method                | Purpose                                         |
|-----------------------|-------------------------------------------------|
| get_function          | look up an existing function by name            |
| declare_function      | declare double(double, ...) with named params   |
| function_arguments    | the argument values of a function, in order     |
| begin_function_body   | open the entry block, direct emission into it   |
| emit_constant         | floating-point constant                         |
| emit_binary           | one Opcode applied to two values                |
| emit_bool_to_float    | widen an i1 comparison result to 0.0 / 1.0      |
| emit_return           | return a value from the open function           |
| verify_function       | None if well formed, else a diagnostic string   |
| remove_function       | drop a function from the unit                   |
| print_function        | textual IR of one function                      |
| print_unit            | textual IR of the whole unit                    |

Constant Folding
----------------
LLVMBackend folds an instruction when both operands are constants, the way
LLVM's IRBuilder does with its default folder. ``(2 + 3) * 4`` therefore
compiles to ``ret double 20.0`` with no arithmetic instructions. Folding
follows IEEE semantics: division by zero gives an infinity or NaN, and the
unordered comparisons are true when either operand is NaN.
"""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional, Sequence
import logging
import math

from llvmlite import ir
from llvmlite import binding as llvm


logger = logging.getLogger(__name__)


# =============================================================================
# Instruction Kinds
# =============================================================================

class Opcode(Enum):
    """Binary instructions the code generator can request."""
    FADD = auto()       # floating add
    FSUB = auto()       # floating subtract
    FMUL = auto()       # floating multiply
    FDIV = auto()       # floating divide
    FCMP_ULT = auto()   # unordered less-than, yields i1
    FCMP_UGT = auto()   # unordered greater-than, yields i1
    FCMP_UEQ = auto()   # unordered equal, yields i1

    @property
    def is_comparison(self) -> bool:
        return self in (Opcode.FCMP_ULT, Opcode.FCMP_UGT, Opcode.FCMP_UEQ)


# =============================================================================
# Abstract Backend
# =============================================================================

class Backend(ABC):
    """
    Interface between the code generator and an IR library.

    Values and function handles are opaque to the code generator; it only
    passes them back into the backend.
    """

    @abstractmethod
    def get_function(self, name: str) -> Optional[Any]:
        """Return the function named ``name`` if the unit has one."""
        pass

    @abstractmethod
    def declare_function(self, name: str, params: Sequence[str]) -> Any:
        """Declare ``double name(double, ...)`` with one parameter per name."""
        pass

    @abstractmethod
    def function_arguments(self, function: Any) -> Sequence[Any]:
        """Return the argument values of ``function`` in order."""
        pass

    @abstractmethod
    def begin_function_body(self, function: Any) -> Any:
        """Append an entry block to ``function`` and emit into it."""
        pass

    @abstractmethod
    def emit_constant(self, value: float) -> Any:
        pass

    @abstractmethod
    def emit_binary(self, opcode: Opcode, lhs: Any, rhs: Any) -> Any:
        pass

    @abstractmethod
    def emit_bool_to_float(self, value: Any) -> Any:
        pass

    @abstractmethod
    def emit_return(self, value: Any) -> None:
        pass

    @abstractmethod
    def verify_function(self, function: Any) -> Optional[str]:
        """Return None if ``function`` is well formed, else a diagnostic."""
        pass

    @abstractmethod
    def remove_function(self, function: Any) -> None:
        pass

    @abstractmethod
    def print_function(self, function: Any) -> str:
        pass

    @abstractmethod
    def print_unit(self) -> str:
        pass


# =============================================================================
# Constant Folding Helpers
# =============================================================================

def _ieee_divide(lhs: float, rhs: float) -> float:
    """Divide with IEEE 754 results for a zero divisor."""
    if rhs != 0.0:
        return lhs / rhs
    if lhs == 0.0 or math.isnan(lhs):
        return math.nan
    return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)


def fold_binary(opcode: Opcode, lhs: float, rhs: float) -> float | bool:
    """
    Evaluate ``opcode`` on two constants.

    Returns a float for arithmetic and a bool for comparisons.
    """
    if opcode == Opcode.FADD:
        return lhs + rhs
    if opcode == Opcode.FSUB:
        return lhs - rhs
    if opcode == Opcode.FMUL:
        return lhs * rhs
    if opcode == Opcode.FDIV:
        return _ieee_divide(lhs, rhs)

    unordered = math.isnan(lhs) or math.isnan(rhs)
    if opcode == Opcode.FCMP_ULT:
        return unordered or lhs < rhs
    if opcode == Opcode.FCMP_UGT:
        return unordered or lhs > rhs
    if opcode == Opcode.FCMP_UEQ:
        return unordered or lhs == rhs
    raise ValueError(f"unknown opcode {opcode!r}")


# =============================================================================
# llvmlite Backend
# =============================================================================

class LLVMBackend(Backend):
    """
    Backend emitting LLVM IR through llvmlite.

    The program unit is a single ``ir.Module``. Verification round-trips the
    module text through ``llvmlite.binding`` and runs LLVM's verifier.

    Example:
        backend = LLVMBackend()
        fn = backend.declare_function("__anon_expr", [])
        backend.begin_function_body(fn)
        backend.emit_return(backend.emit_constant(1.0))
        print(backend.print_function(fn))

    Attributes:
        module: The program unit
        fold_constants: Fold instructions whose operands are all constants
    """

    # Instruction names, matching the usual LLVM tutorial output
    _VALUE_NAMES = {
        Opcode.FADD: "addtmp",
        Opcode.FSUB: "subtmp",
        Opcode.FMUL: "multmp",
        Opcode.FDIV: "divtmp",
        Opcode.FCMP_ULT: "cmptmp",
        Opcode.FCMP_UGT: "cmptmp",
        Opcode.FCMP_UEQ: "cmptmp",
    }

    _COMPARISON_OPS = {
        Opcode.FCMP_ULT: "<",
        Opcode.FCMP_UGT: ">",
        Opcode.FCMP_UEQ: "==",
    }

    def __init__(self, module_name: str = "jit", fold_constants: bool = True):
        self.module = ir.Module(name=module_name)
        self.fold_constants = fold_constants
        self._double = ir.DoubleType()
        self._bool = ir.IntType(1)
        self._builder: Optional[ir.IRBuilder] = None

    # =========================================================================
    # Functions
    # =========================================================================

    def get_function(self, name: str) -> Optional[ir.Function]:
        value = self.module.globals.get(name)
        if isinstance(value, ir.Function):
            return value
        return None

    def declare_function(self, name: str, params: Sequence[str]) -> ir.Function:
        function_type = ir.FunctionType(self._double, [self._double] * len(params))
        function = ir.Function(self.module, function_type, name=name)
        for arg, param in zip(function.args, params):
            arg.name = param
        logger.debug(f"Declared function '{name}' with {len(params)} parameter(s)")
        return function

    def function_arguments(self, function: ir.Function) -> Sequence[ir.Argument]:
        return function.args

    def begin_function_body(self, function: ir.Function) -> ir.Block:
        block = function.append_basic_block(name="entry")
        self._builder = ir.IRBuilder(block)
        return block

    def remove_function(self, function: ir.Function) -> None:
        name = function.name
        if self.module.globals.get(name) is function:
            del self.module.globals[name]
            self._rebuild_scope()
            logger.debug(f"Removed function '{name}'")

    def _rebuild_scope(self) -> None:
        """
        Re-register the module's global names in a fresh scope.

        llvmlite has no way to erase a global or release its name. The
        module scope only records global names (each function keeps its own
        scope for locals), so a scope rebuilt from ``module.globals`` frees
        exactly the removed names.
        """
        scope = type(self.module.scope)()
        for name in self.module.globals:
            scope.register(name)
        self.module.scope = scope

    # =========================================================================
    # Instructions
    # =========================================================================

    def _require_builder(self) -> ir.IRBuilder:
        if self._builder is None:
            raise RuntimeError("no function body is open")
        return self._builder

    def emit_constant(self, value: float) -> ir.Constant:
        return ir.Constant(self._double, float(value))

    def emit_binary(self, opcode: Opcode, lhs: ir.Value, rhs: ir.Value) -> ir.Value:
        if self.fold_constants and isinstance(lhs, ir.Constant) and isinstance(rhs, ir.Constant):
            folded = fold_binary(opcode, lhs.constant, rhs.constant)
            if opcode.is_comparison:
                return ir.Constant(self._bool, int(folded))
            return ir.Constant(self._double, folded)

        builder = self._require_builder()
        name = self._VALUE_NAMES[opcode]
        if opcode == Opcode.FADD:
            return builder.fadd(lhs, rhs, name=name)
        if opcode == Opcode.FSUB:
            return builder.fsub(lhs, rhs, name=name)
        if opcode == Opcode.FMUL:
            return builder.fmul(lhs, rhs, name=name)
        if opcode == Opcode.FDIV:
            return builder.fdiv(lhs, rhs, name=name)
        return builder.fcmp_unordered(self._COMPARISON_OPS[opcode], lhs, rhs, name=name)

    def emit_bool_to_float(self, value: ir.Value) -> ir.Value:
        if self.fold_constants and isinstance(value, ir.Constant):
            return ir.Constant(self._double, float(value.constant))
        return self._require_builder().uitofp(value, self._double, name="booltmp")

    def emit_return(self, value: ir.Value) -> None:
        self._require_builder().ret(value)

    # =========================================================================
    # Verification and Printing
    # =========================================================================

    def verify_function(self, function: ir.Function) -> Optional[str]:
        """
        Run LLVM's verifier over the unit containing ``function``.

        llvmlite's binding layer verifies whole modules, so the entire
        unit is checked; it only ever holds well-formed functions plus the
        one being verified.
        """
        try:
            parsed = llvm.parse_assembly(str(self.module))
            parsed.verify()
        except RuntimeError as e:
            logger.debug(f"Verification of '{function.name}' failed: {e}")
            return str(e)
        return None

    def print_function(self, function: ir.Function) -> str:
        return str(function)

    def print_unit(self) -> str:
        return str(self.module)
