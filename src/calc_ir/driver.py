"""
Compiler Driver Loop
====================

This module runs the read-compile-print loop. It reads one top-level unit
at a time, parses it, translates it and prints the generated IR:

    Input → Lexer → Parser → AST → CodeGenerator → Backend → printed IR

Loop States
-----------
The loop looks at the current token and takes one of four transitions:

| Current token  | Action                                            |
|----------------|---------------------------------------------------|
| EOF            | stop                                              |
| ERROR          | report "only numeric literals...", skip the token |
| ';'            | skip the separator                                |
| anything else  | compile one top-level expression                  |

A failed top-level expression is reported and exactly one token is
discarded before the loop continues. No input makes the loop fail. It ends
only when it sees end of input.

Output Channels
---------------
- output: generated IR of each unit, then the whole unit at the end
- diagnostics: the ``ready>`` prompt, the "Generated IR and result:" banner
  and error messages

Usage
-----
Programmatic:
    >>> from calc_ir import compile_source
    >>> for ir_text in compile_source("1 + 2; 3 * 4"):
    ...     print(ir_text)

Interactive:
    $ calcir
    ready> (2 + 3) * 4
"""

from dataclasses import dataclass, field
from typing import Optional, TextIO
import io
import logging
import sys

import click

from calc_ir.ast import ASTPrinter
from calc_ir.backend import Backend, LLVMBackend
from calc_ir.codegen import CodeGenerator
from calc_ir.errors import CalcError, Err, ErrorCollector, InvalidCharacterError
from calc_ir.lexer import Lexer, TokenType
from calc_ir.parser import Parser
from calc_ir.precedence import PrecedenceTable


logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        prompt: Write the ``ready>`` prompt before each top-level read
        print_module: Print the whole program unit when input ends
        fold_constants: Fold instructions whose operands are constants
        verify: Verify each generated function with the backend
        module_name: Name of the program unit
        show_ast: Print each parsed tree to diagnostics before translation
    """
    prompt: bool = True
    print_module: bool = True
    fold_constants: bool = True
    verify: bool = True
    module_name: str = "jit"
    show_ast: bool = False


@dataclass
class DriverResult:
    """
    Outcome of a driver run.

    Attributes:
        compiled: IR text of each successfully compiled unit, in order
        errors: Every error reported during the run
        module: Text of the program unit when the run ended
    """
    compiled: list[str] = field(default_factory=list)
    errors: list[CalcError] = field(default_factory=list)
    module: str = ""

    @property
    def success(self) -> bool:
        return not self.errors


class Driver:
    """
    Top-level read-compile-print loop.

    Example:
        driver = Driver(Lexer(sys.stdin))
        result = driver.run()

    Attributes:
        options: Compiler configuration
        backend: Program unit owner; shared across all top-level units
        parser: Parser over the input lexer
        codegen: Translator bound to the backend
    """

    PROMPT = "ready> "
    SEPARATOR = ";"

    def __init__(
        self,
        lexer: Lexer,
        backend: Optional[Backend] = None,
        precedence: Optional[PrecedenceTable] = None,
        options: Optional[CompilerOptions] = None,
        output: Optional[TextIO] = None,
        diagnostics: Optional[TextIO] = None,
    ):
        self.options = options if options is not None else CompilerOptions()
        self.backend = backend if backend is not None else LLVMBackend(
            module_name=self.options.module_name,
            fold_constants=self.options.fold_constants,
        )
        self.parser = Parser(lexer, precedence)
        self.codegen = CodeGenerator(self.backend, verify=self.options.verify)
        self.output = output if output is not None else sys.stdout
        self.diagnostics = diagnostics if diagnostics is not None else sys.stderr

        self._errors = ErrorCollector()
        self._compiled: list[str] = []

    # =========================================================================
    # Main Loop
    # =========================================================================

    def run(self) -> DriverResult:
        """
        Process the whole input, then print the program unit.

        Returns:
            DriverResult with the compiled units and reported errors
        """
        self._errors.clear()
        self._compiled = []

        self._prompt()
        self.parser.next_token()

        while True:
            token = self.parser.current
            if token.type == TokenType.EOF:
                break

            if token.type == TokenType.ERROR:
                self._report(InvalidCharacterError(token.value))
                self.parser.next_token()
            elif token.is_char(self.SEPARATOR):
                self.parser.next_token()
            else:
                self.handle_top_level_expression()

            self._prompt()

        module = self.backend.print_unit()
        if self.options.print_module:
            click.echo(module.rstrip("\n"), file=self.output)

        logger.debug(
            f"Driver finished: {len(self._compiled)} compiled, "
            f"{self._errors.error_count()} error(s)"
        )
        return DriverResult(
            compiled=list(self._compiled),
            errors=list(self._errors.errors),
            module=module,
        )

    def handle_top_level_expression(self) -> bool:
        """
        Parse, translate and print one top-level expression.

        On failure the error is reported and one token is skipped.

        Returns:
            True if the unit compiled
        """
        parsed = self.parser.parse_top_level_expr()
        if isinstance(parsed, Err):
            self._recover(parsed.error)
            return False
        definition = parsed.value

        if self.options.show_ast:
            click.echo(ASTPrinter().print(definition), file=self.diagnostics)

        generated = self.codegen.generate_function(definition)
        if isinstance(generated, Err):
            self._recover(generated.error)
            return False
        function = generated.value

        text = self.backend.print_function(function)
        click.echo("Generated IR and result:", file=self.diagnostics)
        click.echo(text.rstrip("\n"), file=self.output)
        self._compiled.append(text)

        # Anonymous wrappers are not kept; the name is reused by the next unit
        self.backend.remove_function(function)
        return True

    # =========================================================================
    # Helpers
    # =========================================================================

    def _prompt(self) -> None:
        if self.options.prompt:
            click.echo(self.PROMPT, file=self.diagnostics, nl=False)

    def _report(self, error: CalcError) -> None:
        self._errors.add(error)
        click.echo(str(error), file=self.diagnostics)

    def _recover(self, error: CalcError) -> None:
        """Report a failed unit and skip one token to resynchronize."""
        self._report(error)
        skipped = self.parser.current
        self.parser.next_token()
        logger.debug(f"Skipped {skipped!r} after error")


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(source: str, options: Optional[CompilerOptions] = None) -> list[str]:
    """
    Compile every top-level expression in ``source``.

    Args:
        source: Input text, units separated by ';' or whitespace
        options: Compiler configuration (defaults without prompt or
                 final module print)

    Returns:
        IR text of each compiled unit, in order

    Raises:
        CalcCompilationError: If any unit failed
    """
    if options is None:
        options = CompilerOptions(prompt=False, print_module=False)

    driver = Driver(
        Lexer.from_string(source),
        options=options,
        output=io.StringIO(),
        diagnostics=io.StringIO(),
    )
    result = driver.run()

    collector = ErrorCollector()
    for error in result.errors:
        collector.add(error)
    collector.raise_if_errors()

    return result.compiled
