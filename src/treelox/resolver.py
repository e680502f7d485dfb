from enum import Enum, auto
from typing import Dict, List, Tuple
import logging

from treelox.errors import Diagnostic, ResolveError
from treelox.tokens import Token
import treelox.treelox_ast as ast

logger = logging.getLogger(__name__)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


class Resolver:
    """Static pass binding every local variable reference to its declaration.

    Keeps a stack of lexical scopes; each maps a declared name to whether
    its initializer has finished (False while the declaration is still
    being resolved). A reference found in a scope is recorded in `locals`
    with the number of scopes between it and the declaration. References
    found in no scope are left out and looked up as globals at runtime.
    """

    def __init__(self):
        self.scopes: List[Dict[str, bool]] = []  # Stack of scopes, innermost last
        self.locals: Dict[ast.Node, int] = {}
        self.errors: List[ResolveError] = []
        self.current_function = FunctionType.NONE
        self.current_class = ClassType.NONE

    def resolve(self, statements: List['ast.Stmt']) -> Tuple[Dict[ast.Node, int], List[Diagnostic]]:
        for stmt in statements:
            self.resolve_stmt(stmt)
        logger.debug(f"Resolved {len(self.locals)} local references, {len(self.errors)} resolution errors")
        return self.locals, [error.to_diagnostic() for error in self.errors]

    # ------------------------------------------------------------------ scopes

    def begin_scope(self) -> None:
        self.scopes.append({})

    def end_scope(self) -> None:
        self.scopes.pop()

    def declare(self, name: Token) -> None:
        if not self.scopes:
            return
        scope = self.scopes[-1]
        if name.lexeme in scope:
            self.error(name, "Already a variable with this name in this scope.")
        scope[name.lexeme] = False

    def define(self, name: Token) -> None:
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme] = True

    def resolve_local(self, expr: ast.Node, name: Token) -> None:
        for hops, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr] = hops
                logger.debug(f"'{name.lexeme}' on line {name.line} resolved at distance {hops}")
                return
        # Not found: global

    def error(self, token: Token, message: str) -> None:
        self.errors.append(ResolveError.at(token, message))

    # -------------------------------------------------------------- statements

    def resolve_stmt(self, stmt: 'ast.Stmt') -> None:
        if isinstance(stmt, ast.Block):
            self.begin_scope()
            for inner in stmt.statements:
                self.resolve_stmt(inner)
            self.end_scope()
        elif isinstance(stmt, ast.Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, ast.Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt, FunctionType.FUNCTION)
        elif isinstance(stmt, ast.Class):
            self.resolve_class(stmt)
        elif isinstance(stmt, ast.Expression):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, ast.Print):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, ast.If):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, ast.While):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.body)
            if stmt.increment is not None:
                self.resolve_expr(stmt.increment)
        elif isinstance(stmt, ast.Return):
            if self.current_function == FunctionType.NONE:
                self.error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.error(stmt.keyword, "Can't return a value from an initializer.")
                self.resolve_expr(stmt.value)
        else:
            raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def resolve_class(self, stmt: 'ast.Class') -> None:
        enclosing_class = self.current_class
        self.current_class = ClassType.CLASS
        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = ClassType.SUBCLASS
            self.resolve_expr(stmt.superclass)
            # Scope holding `super`
            self.begin_scope()
            self.scopes[-1]["super"] = True

        # Scope holding `this`
        self.begin_scope()
        self.scopes[-1]["this"] = True
        for method in stmt.methods:
            kind = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
            self.resolve_function(method, kind)
        self.end_scope()

        if stmt.superclass is not None:
            self.end_scope()
        self.current_class = enclosing_class

    def resolve_function(self, function: 'ast.FunctionNode', kind: FunctionType) -> None:
        enclosing_function = self.current_function
        self.current_function = kind
        self.begin_scope()
        for param in function.params:
            self.declare(param)
            self.define(param)
        for stmt in function.body:
            self.resolve_stmt(stmt)
        self.end_scope()
        self.current_function = enclosing_function

    # ------------------------------------------------------------- expressions

    def resolve_expr(self, expr: 'ast.Expr') -> None:
        if isinstance(expr, ast.Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.error(expr.name, "Can't read local variable in its own initializer.")
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, ast.Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, ast.This):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, ast.Super):
            if self.current_class == ClassType.NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.")
                return
            if self.current_class != ClassType.SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, (ast.Binary, ast.Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, ast.Unary):
            self.resolve_expr(expr.right)
        elif isinstance(expr, ast.Grouping):
            self.resolve_expr(expr.expression)
        elif isinstance(expr, ast.Call):
            self.resolve_expr(expr.callee)
            for argument in expr.arguments:
                self.resolve_expr(argument)
        elif isinstance(expr, ast.Get):
            self.resolve_expr(expr.object)
        elif isinstance(expr, ast.Set):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
        elif isinstance(expr, ast.FunctionLiteral):
            self.resolve_function(expr, FunctionType.FUNCTION)
        elif isinstance(expr, ast.Literal):
            pass
        else:
            raise TypeError(f"Unknown expression node: {type(expr).__name__}")


def resolve(statements: List['ast.Stmt']) -> Tuple[Dict[ast.Node, int], List[Diagnostic]]:
    return Resolver().resolve(statements)
