# =============================================================================
# test_errors.py - Error Hierarchy Tests
# =============================================================================
# Tests for error formatting, the Ok/Err result type, the error collector
# and the CLI exit-code mapping.
# =============================================================================

import click
import pytest
from calc_ir.cli.errors import ExitCode, handle_cli_exception
from calc_ir.errors import (
    CalcCompilationError,
    CalcError,
    CalcSyntaxError,
    CodeGenError,
    Err,
    ErrorCollector,
    InvalidCharacterError,
    InvalidOperatorError,
    MissingTokenError,
    NestingTooDeepError,
    Ok,
    UnexpectedTokenError,
    VerificationError,
)


class TestFormatting:
    """Messages render as 'error:' with an optional 'hint:' line."""

    def test_message_only(self):
        assert str(CalcError("boom")) == "error: boom"

    def test_with_hint(self):
        error = MissingTokenError(")", hint="close it")
        assert str(error) == "error: expected ')'\nhint: close it"

    def test_invalid_character(self):
        error = InvalidCharacterError("abc")
        assert error.message == "only numeric literals and operators are permitted"
        assert "remove 'abc'" in str(error)

    def test_nesting_too_deep(self):
        error = NestingTooDeepError(100)
        assert error.limit == 100
        assert str(error) == (
            "error: expression nested too deeply\n"
            "hint: at most 100 levels of parentheses are allowed"
        )

    def test_verification_hint_is_diagnostic(self):
        error = VerificationError("f", "  bad block\n")
        assert error.hint == "bad block"
        assert "function 'f' failed verification" in str(error)

    def test_empty_diagnostic_has_no_hint(self):
        assert VerificationError("f", "").hint is None

    def test_compilation_error_passes_message_through(self):
        assert str(CalcCompilationError("already formatted")) == "already formatted"

    def test_hierarchy(self):
        assert issubclass(InvalidCharacterError, CalcSyntaxError)
        assert issubclass(UnexpectedTokenError, CalcSyntaxError)
        assert issubclass(MissingTokenError, CalcSyntaxError)
        assert issubclass(NestingTooDeepError, CalcSyntaxError)
        assert issubclass(InvalidOperatorError, CodeGenError)
        assert issubclass(VerificationError, CodeGenError)
        assert issubclass(CodeGenError, CalcError)


class TestResult:
    """Ok and Err values."""

    def test_ok_unwrap(self):
        assert Ok(3).unwrap() == 3

    def test_err_unwrap_raises_carried_error(self):
        error = UnexpectedTokenError(")")
        with pytest.raises(UnexpectedTokenError) as exc_info:
            Err(error).unwrap()
        assert exc_info.value is error

    def test_equality(self):
        assert Ok(1.0) == Ok(1.0)
        assert Ok(1.0) != Ok(2.0)


class TestErrorCollector:
    """Collection and reporting of driver errors."""

    def test_empty(self):
        collector = ErrorCollector()
        assert not collector.has_errors()
        assert collector.error_count() == 0
        collector.raise_if_errors()

    def test_report(self):
        collector = ErrorCollector()
        collector.add(MissingTokenError(")"))
        collector.add(InvalidCharacterError("x"))
        report = collector.report()
        assert "expected ')'" in report
        assert report.endswith("2 errors")

    def test_singular(self):
        collector = ErrorCollector()
        collector.add(CalcError("one"))
        assert collector.report().endswith("1 error")

    def test_raise_if_errors(self):
        collector = ErrorCollector()
        collector.add(CalcError("one"))
        with pytest.raises(CalcCompilationError):
            collector.raise_if_errors()

    def test_clear(self):
        collector = ErrorCollector()
        collector.add(CalcError("one"))
        collector.clear()
        assert not collector.has_errors()


class TestCliExceptionHandling:
    """Exit codes chosen by handle_cli_exception."""

    def test_calc_error(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(CalcError("bad"))
        assert exc_info.value.code == ExitCode.BUILD_ERROR

    @pytest.mark.parametrize("error", [
        click.BadParameter("nope"),
        FileNotFoundError("missing"),
        PermissionError("denied"),
    ])
    def test_argument_errors(self, error):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(error)
        assert exc_info.value.code == ExitCode.INVALID_ARGS

    def test_internal_error(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(ValueError("oops"))
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
