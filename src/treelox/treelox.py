from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, TextIO, Union
import argparse
import logging
import sys

from treelox.ast_printer import AstPrinter
from treelox.errors import Diagnostic, ErrorReporter, LoxRuntimeError
from treelox.interpreter import Interpreter
from treelox.lexer import scan
from treelox.parser import parse
from treelox.resolver import resolve

logger = logging.getLogger(__name__)

# sysexits(3) codes
EXIT_OK = 0
EXIT_DATAERR = 65
EXIT_NOINPUT = 66
EXIT_SOFTWARE = 70


@dataclass
class RunOptions:
    """Options for a treelox session"""
    dump_tokens: bool = False
    dump_ast: bool = False
    debug: bool = False


@dataclass(frozen=True)
class Ok:
    pass


@dataclass(frozen=True)
class CompileFailure:
    """Scanning, parsing or resolution reported at least one error"""
    diagnostics: List[Diagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class RuntimeFailure:
    """Execution stopped at the first runtime error"""
    diagnostic: Diagnostic


RunResult = Union[Ok, CompileFailure, RuntimeFailure]


def exit_code(result: RunResult) -> int:
    if isinstance(result, CompileFailure):
        return EXIT_DATAERR
    if isinstance(result, RuntimeFailure):
        return EXIT_SOFTWARE
    return EXIT_OK


class Lox:
    """One interpreter session: scan, parse, resolve and run source text.

    Globals survive between `run` calls on the same session, which is what
    the REPL relies on. Diagnostics go to `reporter`; program output goes
    to `stdout`.
    """

    def __init__(self, options: Optional[RunOptions] = None, stdout: Optional[TextIO] = None,
                 reporter: Optional[ErrorReporter] = None):
        self.options = options or RunOptions()
        self.stdout = stdout if stdout is not None else sys.stdout
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.interpreter = Interpreter(self.stdout)

    def run(self, source: str) -> RunResult:
        tokens, diagnostics = scan(source)
        if self.options.dump_tokens:
            for token in tokens:
                print(repr(token), file=self.stdout)

        statements, syntax_errors = parse(tokens)
        diagnostics += syntax_errors
        if self.options.dump_ast:
            printer = AstPrinter()
            for stmt in statements:
                print(printer.print_stmt(stmt), file=self.stdout)

        locals_table, resolution_errors = resolve(statements)
        diagnostics += resolution_errors
        if diagnostics:
            self.reporter.extend(diagnostics)
            logger.debug(f"Run stopped with {len(diagnostics)} compile errors")
            return CompileFailure(diagnostics)

        self.interpreter.resolve(locals_table)
        try:
            self.interpreter.interpret(statements)
        except LoxRuntimeError as e:
            diagnostic = e.to_diagnostic()
            self.reporter.report(diagnostic)
            return RuntimeFailure(diagnostic)
        return Ok()


def run(source: str, stdout: Optional[TextIO] = None, reporter: Optional[ErrorReporter] = None) -> RunResult:
    """Run `source` in a fresh session"""
    return Lox(stdout=stdout, reporter=reporter).run(source)


def run_file(path: Union[str, Path], options: Optional[RunOptions] = None) -> int:
    try:
        source = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        print(f"Could not read {path}: {e.strerror}", file=sys.stderr)
        return EXIT_NOINPUT
    lox = Lox(options, reporter=ErrorReporter(stream=sys.stderr))
    return exit_code(lox.run(source))


def run_prompt(options: Optional[RunOptions] = None, stdin: Optional[TextIO] = None) -> int:
    """Read-evaluate-print loop; errors are reported and the session goes on"""
    stdin = stdin if stdin is not None else sys.stdin
    reporter = ErrorReporter(stream=sys.stderr)
    lox = Lox(options, reporter=reporter)
    while True:
        print("> ", end="", flush=True)
        line = stdin.readline()
        if not line:
            print()
            return EXIT_OK
        lox.run(line)
        reporter.reset()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    parser = argparse.ArgumentParser(description="treelox interpreter")
    parser.add_argument('script', nargs='?', help='Script to run; starts a REPL when omitted')
    parser.add_argument('--dump-tokens', action='store_true', help='Print the scanned tokens')
    parser.add_argument('--dump-ast', action='store_true', help='Print the parsed syntax tree')
    parser.add_argument('--debug', '-g', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(name)s - %(levelname)s - %(message)s',
    )
    options = RunOptions(dump_tokens=args.dump_tokens, dump_ast=args.dump_ast, debug=args.debug)

    if args.script is None:
        return run_prompt(options)
    return run_file(args.script, options)


if __name__ == "__main__":
    sys.exit(main())
