"""
calc-ir - Arithmetic Expression to LLVM IR Compiler
===================================================

This package compiles a stream of arithmetic expressions into LLVM IR. Each
top-level expression becomes an anonymous zero-argument function returning
a double, and its IR is printed as soon as it is compiled.

Pipeline
--------
    Input → Lexer → Parser → AST → CodeGenerator → Backend (llvmlite)

Main Components
---------------
- **lexer**: numbers, single-character operators, end of input
- **precedence**: binary operator precedence table
- **parser**: recursive descent with precedence climbing
- **ast**: expression tree and function wrappers
- **codegen**: AST to backend instruction translation
- **backend**: IR emission interface and the llvmlite implementation
- **driver**: the read-compile-print loop

Language
--------
- Numbers: ``42``, ``3.5``, ``.25`` (all values are doubles)
- Operators: ``< > =`` (lowest), ``+ -``, ``* /`` (highest)
- Comparisons yield 0.0 or 1.0
- Parentheses group; ``;`` separates top-level expressions

Quick Start
-----------
    >>> from calc_ir import compile_source
    >>> print(compile_source("(2 + 3) * 4")[0])
    define double @"__anon_expr"()
    {
    entry:
      ret double 0x4034000000000000
    }

Or use the command-line tool:
    $ echo "8 - 3 - 2" | calcir
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from calc_ir.errors import (
    CalcError,
    CalcCompilationError,
    CalcSyntaxError,
    InvalidCharacterError,
    UnexpectedTokenError,
    MissingTokenError,
    NestingTooDeepError,
    CodeGenError,
    InvalidOperatorError,
    VerificationError,
    Ok,
    Err,
    Result,
    ErrorCollector,
)
from calc_ir.lexer import Lexer, Token, TokenType
from calc_ir.precedence import PrecedenceTable, NO_PRECEDENCE, DEFAULT_PRECEDENCE
from calc_ir.ast import (
    ANONYMOUS_FUNCTION_NAME,
    BinaryOperator,
    NumberLiteral,
    BinaryExpression,
    Expression,
    Prototype,
    FunctionDefinition,
    ASTPrinter,
    format_expression,
)
from calc_ir.parser import Parser, parse_source
from calc_ir.backend import Backend, LLVMBackend, Opcode
from calc_ir.codegen import CodeGenerator
from calc_ir.driver import Driver, DriverResult, CompilerOptions, compile_source

__all__ = [
    # Version
    "__version__",
    # Errors and results
    "CalcError",
    "CalcCompilationError",
    "CalcSyntaxError",
    "InvalidCharacterError",
    "UnexpectedTokenError",
    "MissingTokenError",
    "NestingTooDeepError",
    "CodeGenError",
    "InvalidOperatorError",
    "VerificationError",
    "Ok",
    "Err",
    "Result",
    "ErrorCollector",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    # Precedence
    "PrecedenceTable",
    "NO_PRECEDENCE",
    "DEFAULT_PRECEDENCE",
    # AST
    "ANONYMOUS_FUNCTION_NAME",
    "BinaryOperator",
    "NumberLiteral",
    "BinaryExpression",
    "Expression",
    "Prototype",
    "FunctionDefinition",
    "ASTPrinter",
    "format_expression",
    # Parser
    "Parser",
    "parse_source",
    # Backend and code generation
    "Backend",
    "LLVMBackend",
    "Opcode",
    "CodeGenerator",
    # Driver
    "Driver",
    "DriverResult",
    "CompilerOptions",
    "compile_source",
]
