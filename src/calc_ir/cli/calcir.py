"""
calcir - Expression Compiler Command-Line Interface
===================================================

This module implements the ``calcir`` command. It feeds standard input (or
a file) through the driver loop and prints the LLVM IR of every expression.

Usage Examples
--------------
Interactive session:
    $ calcir
    ready> 2 + 3 * 4;

From a file, IR to a file:
    $ calcir exprs.txt -o exprs.ll

Without constant folding, to see the instructions:
    $ echo "3 < 5" | calcir --no-fold

Debug logging:
    $ calcir -v exprs.txt
"""

import logging
import sys
from typing import Optional, TextIO

import click

from calc_ir import __version__
from calc_ir.driver import CompilerOptions, Driver
from calc_ir.lexer import Lexer
from calc_ir.cli.errors import handle_cli_exception


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    required=False,
    default="-",
    type=click.File("r", encoding="utf-8", lazy=False),
)
@click.option(
    "-o", "--output",
    default="-",
    type=click.File("w", encoding="utf-8", lazy=False),
    help="Write generated IR to this file (default: stdout)",
)
@click.option(
    "--prompt/--no-prompt",
    default=None,
    help="Show the 'ready>' prompt (default: only for an interactive terminal)",
)
@click.option(
    "--fold/--no-fold",
    default=True,
    show_default=True,
    help="Fold instructions whose operands are constants",
)
@click.option(
    "--verify/--no-verify",
    default=True,
    show_default=True,
    help="Run the LLVM verifier on each generated function",
)
@click.option(
    "--module/--no-module",
    "print_module",
    default=True,
    show_default=True,
    help="Print the whole program unit when input ends",
)
@click.option(
    "--module-name",
    default="jit",
    show_default=True,
    help="Name of the LLVM module",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print each parsed expression tree (for debugging)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging)",
)
@click.version_option(version=__version__, prog_name="calcir")
def main(
    input_file: TextIO,
    output: TextIO,
    prompt: Optional[bool],
    fold: bool,
    verify: bool,
    print_module: bool,
    module_name: str,
    ast: bool,
    verbose: bool,
) -> None:
    """
    Compile arithmetic expressions to LLVM IR.

    INPUT_FILE holds the expressions; standard input is read if omitted
    or '-'. Expressions may be separated by ';'. Each one is compiled into
    an anonymous function and its IR printed.

    \b
    Language:
        numbers      42  3.5  .25
        operators    < > =   + -   * /   (lowest to highest)
        grouping     ( ... )
        separator    ;
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    try:
        if prompt is None:
            prompt = input_file.isatty()

        options = CompilerOptions(
            prompt=prompt,
            print_module=print_module,
            fold_constants=fold,
            verify=verify,
            module_name=module_name,
            show_ast=ast,
        )

        # click closes both files when the command returns
        driver = Driver(
            Lexer(input_file),
            options=options,
            output=output,
            diagnostics=sys.stderr,
        )
        result = driver.run()

        if verbose:
            click.echo(
                f"Compiled {len(result.compiled)} expression(s), "
                f"{len(result.errors)} error(s)",
                err=True,
            )

    # Errors in the input are reported by the driver and are not fatal
    except Exception as e:
        handle_cli_exception(e, verbose=verbose)


if __name__ == "__main__":
    main()
