"""treelox: a tree-walking interpreter for the Lox scripting language.

Pipeline modules:
- lexer: ply-based scanner producing tokens
- parser: recursive-descent parser with panic-mode recovery
- resolver: static scope resolution into a hop-count table
- interpreter: tree-walking evaluator over an environment chain
- treelox: `run(source) -> RunResult`, the session object and the CLI
"""

from .errors import Category, Diagnostic, ErrorReporter
from .treelox import CompileFailure, Lox, Ok, RunOptions, RunResult, RuntimeFailure, run

__all__ = [
    "Category",
    "CompileFailure",
    "Diagnostic",
    "ErrorReporter",
    "Lox",
    "Ok",
    "RunOptions",
    "RunResult",
    "RuntimeFailure",
    "run",
]
