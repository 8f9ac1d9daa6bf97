# =============================================================================
# test_backend.py - llvmlite Backend Tests
# =============================================================================
# Tests for the LLVM backend: constant folding, emitted instructions,
# function removal and reuse of names, verification, and printing.
# Folded constants print as hex doubles, so folded values are checked on
# the IR objects rather than in the text.
# =============================================================================

import math

import pytest
from llvmlite import ir

from calc_ir.backend import LLVMBackend, Opcode, fold_binary
from calc_ir.codegen import CodeGenerator
from calc_ir.parser import parse_source


# =============================================================================
# Helper Functions
# =============================================================================

def build(source: str, fold: bool = True):
    """Compile ``source`` into a fresh backend; returns (backend, function)."""
    backend = LLVMBackend(fold_constants=fold)
    result = CodeGenerator(backend).generate_function(parse_source(source))
    return backend, result.unwrap()


def returned_constant(function: ir.Function) -> float:
    """Value of the constant a folded function returns."""
    ret = function.blocks[0].terminator
    assert isinstance(ret.return_value, ir.Constant)
    return ret.return_value.constant


def open_function(backend: LLVMBackend, name: str = "f") -> ir.Function:
    function = backend.declare_function(name, [])
    backend.begin_function_body(function)
    return function


# =============================================================================
# Folding Helper Tests
# =============================================================================

class TestFoldBinary:
    """IEEE semantics of the folding helper."""

    @pytest.mark.parametrize("opcode,lhs,rhs,expected", [
        (Opcode.FADD, 2.0, 3.0, 5.0),
        (Opcode.FSUB, 2.0, 3.0, -1.0),
        (Opcode.FMUL, 2.0, 3.0, 6.0),
        (Opcode.FDIV, 3.0, 2.0, 1.5),
        (Opcode.FDIV, 1.0, 0.0, math.inf),
        (Opcode.FDIV, -1.0, 0.0, -math.inf),
        (Opcode.FDIV, 1.0, -0.0, -math.inf),
    ])
    def test_arithmetic(self, opcode, lhs, rhs, expected):
        assert fold_binary(opcode, lhs, rhs) == expected

    def test_zero_over_zero_is_nan(self):
        assert math.isnan(fold_binary(Opcode.FDIV, 0.0, 0.0))

    @pytest.mark.parametrize("opcode,lhs,rhs,expected", [
        (Opcode.FCMP_ULT, 1.0, 2.0, True),
        (Opcode.FCMP_ULT, 2.0, 1.0, False),
        (Opcode.FCMP_UGT, 2.0, 1.0, True),
        (Opcode.FCMP_UEQ, 2.0, 2.0, True),
        (Opcode.FCMP_UEQ, 2.0, 1.0, False),
    ])
    def test_comparisons(self, opcode, lhs, rhs, expected):
        assert fold_binary(opcode, lhs, rhs) is expected

    @pytest.mark.parametrize("opcode", [Opcode.FCMP_ULT, Opcode.FCMP_UGT, Opcode.FCMP_UEQ])
    def test_unordered_comparisons_true_on_nan(self, opcode):
        assert fold_binary(opcode, math.nan, 1.0) is True
        assert fold_binary(opcode, 1.0, math.nan) is True


# =============================================================================
# Constant Folding Tests
# =============================================================================

class TestConstantFolding:
    """With folding on, constant expressions compile to a constant return."""

    @pytest.mark.parametrize("source,expected", [
        ("42", 42.0),
        ("8 - 3 - 2", 3.0),
        ("2 + 3 * 4", 14.0),
        ("(2 + 3) * 4", 20.0),
        ("1 < 2", 1.0),
        ("2 < 1", 0.0),
        ("3 = 3", 1.0),
        ("(1 < 2) + 1", 2.0),
    ])
    def test_folded_value(self, source, expected):
        _, function = build(source)
        assert returned_constant(function) == expected

    def test_only_return_instruction(self):
        _, function = build("(2 + 3) * 4")
        instructions = function.blocks[0].instructions
        assert len(instructions) == 1
        assert instructions[0].opname == "ret"

    def test_division_by_zero_folds_to_infinity(self):
        _, function = build("1 / 0")
        assert returned_constant(function) == math.inf

    def test_folded_comparison_is_i1(self):
        backend = LLVMBackend()
        one = backend.emit_constant(1.0)
        value = backend.emit_binary(Opcode.FCMP_ULT, one, backend.emit_constant(2.0))
        assert value.type == ir.IntType(1)
        assert value.constant == 1

    def test_nan_comparison_folds_true(self):
        backend = LLVMBackend()
        nan = backend.emit_constant(math.nan)
        value = backend.emit_binary(Opcode.FCMP_UEQ, nan, nan)
        assert value.constant == 1
        assert backend.emit_bool_to_float(value).constant == 1.0

    def test_folding_needs_no_open_body(self):
        backend = LLVMBackend()
        value = backend.emit_binary(
            Opcode.FADD, backend.emit_constant(1.0), backend.emit_constant(2.0)
        )
        assert value.constant == 3.0


# =============================================================================
# Instruction Emission Tests
# =============================================================================

class TestInstructions:
    """With folding off, every operator becomes an instruction."""

    @pytest.mark.parametrize("source,opname,value_name", [
        ("1 + 2", "fadd", "addtmp"),
        ("1 - 2", "fsub", "subtmp"),
        ("1 * 2", "fmul", "multmp"),
        ("1 / 2", "fdiv", "divtmp"),
    ])
    def test_arithmetic(self, source, opname, value_name):
        backend, function = build(source, fold=False)
        text = backend.print_function(function)
        assert opname in text
        assert value_name in text

    @pytest.mark.parametrize("source,predicate", [
        ("1 < 2", "fcmp ult"),
        ("1 > 2", "fcmp ugt"),
        ("1 = 2", "fcmp ueq"),
    ])
    def test_comparison(self, source, predicate):
        backend, function = build(source, fold=False)
        text = backend.print_function(function)
        assert predicate in text
        assert "cmptmp" in text
        assert "uitofp" in text
        assert "booltmp" in text

    def test_instruction_sequence(self):
        _, function = build("8 - 3 - 2", fold=False)
        opnames = [instr.opname for instr in function.blocks[0].instructions]
        assert opnames == ["fsub", "fsub", "ret"]

    def test_returns_double(self):
        _, function = build("1 < 2", fold=False)
        ret = function.blocks[0].terminator
        assert ret.return_value.type == ir.DoubleType()

    def test_emission_requires_open_body(self):
        backend = LLVMBackend(fold_constants=False)
        one = backend.emit_constant(1.0)
        with pytest.raises(RuntimeError, match="no function body"):
            backend.emit_binary(Opcode.FADD, one, one)
        with pytest.raises(RuntimeError):
            backend.emit_return(one)


# =============================================================================
# Function Management Tests
# =============================================================================

class TestFunctions:
    """Declaration, lookup and removal."""

    def test_declare_signature(self):
        backend = LLVMBackend()
        function = backend.declare_function("f", ["x", "y"])
        assert function.ftype.return_type == ir.DoubleType()
        assert list(function.ftype.args) == [ir.DoubleType(), ir.DoubleType()]
        assert [arg.name for arg in backend.function_arguments(function)] == ["x", "y"]

    def test_get_function(self):
        backend = LLVMBackend()
        function = backend.declare_function("f", [])
        assert backend.get_function("f") is function
        assert backend.get_function("g") is None

    def test_remove(self):
        backend = LLVMBackend()
        function = backend.declare_function("f", [])
        backend.remove_function(function)
        assert backend.get_function("f") is None
        assert "@\"f\"" not in backend.print_unit()

    def test_name_reusable_after_remove(self):
        backend = LLVMBackend()
        first = backend.declare_function("f", [])
        backend.remove_function(first)
        second = backend.declare_function("f", [])
        assert second.name == "f"
        assert backend.get_function("f") is second

    def test_remove_stale_handle_is_noop(self):
        backend = LLVMBackend()
        first = backend.declare_function("f", [])
        backend.remove_function(first)
        second = backend.declare_function("f", [])
        backend.remove_function(first)
        assert backend.get_function("f") is second

    def test_remove_releases_only_that_name(self):
        backend = LLVMBackend()
        first = backend.declare_function("f", [])
        backend.declare_function("g", ["x"])
        backend.remove_function(first)
        assert not backend.module.scope.is_used("f")
        assert backend.module.scope.is_used("g")
        assert backend.declare_function("f", []).name == "f"

    def test_repeated_remove_and_declare(self):
        backend = LLVMBackend()
        for _ in range(3):
            function = open_function(backend)
            backend.emit_return(backend.emit_constant(1.0))
            assert backend.verify_function(function) is None
            backend.remove_function(function)
        assert backend.get_function("f") is None


# =============================================================================
# Verification and Printing Tests
# =============================================================================

class TestVerification:
    """LLVM verifier integration."""

    def test_well_formed_function(self):
        backend, function = build("1 + 2 * 3", fold=False)
        assert backend.verify_function(function) is None

    def test_unterminated_block(self):
        backend = LLVMBackend()
        function = open_function(backend)
        diagnostic = backend.verify_function(function)
        assert isinstance(diagnostic, str)
        assert diagnostic


class TestPrinting:
    """Textual IR output."""

    def test_function_text(self):
        backend, function = build("1 + 2", fold=False)
        text = backend.print_function(function)
        assert text.lstrip().startswith("define double")
        assert "@\"__anon_expr\"()" in text
        assert "ret double" in text

    def test_unit_contains_module_header(self):
        backend = LLVMBackend(module_name="calc")
        assert "ModuleID = \"calc\"" in backend.print_unit()

    def test_print_unit_idempotent(self):
        backend, _ = build("1 + 2")
        assert backend.print_unit() == backend.print_unit()
