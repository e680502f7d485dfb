from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TextIO

from treelox.tokens import Token, TokenType


class Category(Enum):
    """Stage of the pipeline a diagnostic was produced by"""
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    RESOLUTION = "resolution"
    RUNTIME = "runtime"


@dataclass(frozen=True)
class Diagnostic:
    """A single reported problem with its source line"""
    category: Category
    line: int
    message: str
    where: str = ""  # e.g. " at 'x'" or " at end"

    def __str__(self) -> str:
        return f"[line {self.line}] Error{self.where}: {self.message}"


def where_of(token: Token) -> str:
    """Location suffix for a diagnostic raised at `token`"""
    if token.type == TokenType.EOF:
        return " at end"
    return f" at '{token.lexeme}'"


class LoxError(Exception):
    """Base class for every error the pipeline reports to the user"""
    category: Category = Category.RUNTIME

    def __init__(self, message: str, line: int, where: str = ""):
        super().__init__(message)
        self.message = message
        self.line = line
        self.where = where

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(self.category, self.line, self.message, self.where)

    def __str__(self) -> str:
        return str(self.to_diagnostic())


class LexError(LoxError):
    category = Category.LEXICAL


class ParseError(LoxError):
    """Raised inside the parser to unwind to the nearest statement boundary"""
    category = Category.SYNTAX

    @classmethod
    def at(cls, token: Token, message: str) -> 'ParseError':
        return cls(message, token.line, where_of(token))


class ResolveError(LoxError):
    category = Category.RESOLUTION

    @classmethod
    def at(cls, token: Token, message: str) -> 'ResolveError':
        return cls(message, token.line, where_of(token))


class LoxRuntimeError(LoxError):
    """Fatal error raised while executing a program"""
    category = Category.RUNTIME

    def __init__(self, token: Token, message: str):
        super().__init__(message, token.line)
        self.token = token

    def __str__(self) -> str:
        return f"{self.message}\n[line {self.line}]"


@dataclass
class ErrorReporter:
    """Error-reporting sink shared by every stage of a run.

    Diagnostics are collected in order; when `stream` is set each one is
    also written to it as soon as it is reported.
    """
    stream: Optional[TextIO] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    had_error: bool = False
    had_runtime_error: bool = False

    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        if diagnostic.category == Category.RUNTIME:
            self.had_runtime_error = True
        else:
            self.had_error = True
        if self.stream is not None:
            if diagnostic.category == Category.RUNTIME:
                print(f"{diagnostic.message}\n[line {diagnostic.line}]", file=self.stream)
            else:
                print(str(diagnostic), file=self.stream)

    def extend(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.report(diagnostic)

    def reset(self) -> None:
        """Forget error state between REPL lines"""
        self.diagnostics.clear()
        self.had_error = False
        self.had_runtime_error = False
