import sys
import threading
from typing import Any, Dict, List, Optional, TextIO, Union
import logging

from treelox.environment import Environment
from treelox.errors import LoxRuntimeError
from treelox.runtime import (
    NORMAL, LoxCallable, LoxClass, LoxFunction, LoxInstance, Normal, Returned,
    is_equal, is_truthy, native_functions, stringify,
)
from treelox.tokens import Token, TokenType
import treelox.treelox_ast as ast

logger = logging.getLogger(__name__)

Signal = Union[Normal, Returned]

# A Lox call costs about ten Python frames; these bound the call depth of a session
RECURSION_LIMIT = 50_000
STACK_SIZE = 512 * 1024 * 1024


class Interpreter:
    """Tree-walking evaluator; one instance is one interpreter session.

    A session starts with a fresh global scope holding the native
    functions. It keeps its globals and resolved-distance table across
    `interpret` calls so a REPL can build on earlier lines.
    """

    def __init__(self, stdout: Optional[TextIO] = None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[ast.Node, int] = {}
        for native in native_functions():
            self.globals.define(native.name, native)

    def resolve(self, locals_table: Dict[ast.Node, int]) -> None:
        """Merge in hop counts computed by the resolver.

        Entries are kept for the life of the session: a function declared
        on an earlier REPL line still evaluates its body through them.
        """
        self.locals.update(locals_table)

    def interpret(self, statements: List['ast.Stmt']) -> None:
        """Run `statements`; the first runtime error propagates to the caller.

        Execution happens on a worker thread with a large stack and a
        raised recursion limit, so deep but finite Lox recursion completes.
        """
        failures: List[Exception] = []

        def run_statements():
            try:
                for stmt in statements:
                    self.execute(stmt)
            except Exception as e:
                failures.append(e)

        old_limit = sys.getrecursionlimit()
        old_stack_size = threading.stack_size(STACK_SIZE)
        sys.setrecursionlimit(max(old_limit, RECURSION_LIMIT))
        try:
            worker = threading.Thread(target=run_statements, name="treelox-interpreter")
            worker.start()
            threading.stack_size(old_stack_size)
            worker.join()
        finally:
            threading.stack_size(old_stack_size)
            sys.setrecursionlimit(old_limit)
        if failures:
            raise failures[0]

    # -------------------------------------------------------------- statements

    def execute(self, stmt: 'ast.Stmt') -> Signal:
        if isinstance(stmt, ast.Expression):
            self.evaluate(stmt.expression)
            return NORMAL
        elif isinstance(stmt, ast.Print):
            value = self.evaluate(stmt.expression)
            print(stringify(value), file=self.stdout)
            return NORMAL
        elif isinstance(stmt, ast.Var):
            value = None
            if stmt.initializer is not None:
                value = self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
            return NORMAL
        elif isinstance(stmt, ast.Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, ast.If):
            if is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return NORMAL
        elif isinstance(stmt, ast.While):
            return self.execute_while(stmt)
        elif isinstance(stmt, ast.Function):
            function = LoxFunction(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
            return NORMAL
        elif isinstance(stmt, ast.Return):
            value = None
            if stmt.value is not None:
                value = self.evaluate(stmt.value)
            return Returned(value)
        elif isinstance(stmt, ast.Class):
            self.execute_class(stmt)
            return NORMAL
        raise TypeError(f"Unknown statement node: {type(stmt).__name__}")

    def execute_block(self, statements: List['ast.Stmt'], environment: Environment) -> Signal:
        previous = self.environment
        self.environment = environment
        try:
            for stmt in statements:
                signal = self.execute(stmt)
                if isinstance(signal, Returned):
                    return signal
            return NORMAL
        finally:
            self.environment = previous

    def execute_while(self, stmt: 'ast.While') -> Signal:
        if not stmt.per_iteration:
            while is_truthy(self.evaluate(stmt.condition)):
                signal = self.execute(stmt.body)
                if isinstance(signal, Returned):
                    return signal
                if stmt.increment is not None:
                    self.evaluate(stmt.increment)
            return NORMAL

        # Each iteration gets its own copy of the loop-variable scope; the
        # copy sits where that scope sat, so resolved distances still hold.
        previous = self.environment
        self.environment = previous.copy()
        try:
            while is_truthy(self.evaluate(stmt.condition)):
                signal = self.execute(stmt.body)
                if isinstance(signal, Returned):
                    return signal
                self.environment = self.environment.copy()
                if stmt.increment is not None:
                    self.evaluate(stmt.increment)
            return NORMAL
        finally:
            self.environment = previous

    def execute_class(self, stmt: 'ast.Class') -> None:
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)
        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods = {}
        for method in stmt.methods:
            methods[method.name.lexeme] = LoxFunction(method, self.environment,
                                                      is_initializer=method.name.lexeme == "init")
        klass = LoxClass(stmt.name.lexeme, superclass, methods)

        if superclass is not None:
            self.environment = self.environment.enclosing
        self.environment.assign(stmt.name, klass)
        logger.debug(f"Declared class {klass.name} with methods {sorted(methods)}")

    # ------------------------------------------------------------- expressions

    def evaluate(self, expr: 'ast.Expr') -> Any:
        if isinstance(expr, ast.Literal):
            return expr.value
        elif isinstance(expr, ast.Grouping):
            return self.evaluate(expr.expression)
        elif isinstance(expr, ast.Variable):
            return self.look_up_variable(expr.name, expr)
        elif isinstance(expr, ast.Assign):
            value = self.evaluate(expr.value)
            distance = self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        elif isinstance(expr, ast.Unary):
            return self.evaluate_unary(expr)
        elif isinstance(expr, ast.Binary):
            return self.evaluate_binary(expr)
        elif isinstance(expr, ast.Logical):
            left = self.evaluate(expr.left)
            if expr.operator.type == TokenType.OR:
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(expr.right)
        elif isinstance(expr, ast.Call):
            return self.evaluate_call(expr)
        elif isinstance(expr, ast.Get):
            obj = self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError(expr.name, "Only instances have properties.")
        elif isinstance(expr, ast.Set):
            obj = self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value = self.evaluate(expr.value)
            obj.set(expr.name, value)
            return value
        elif isinstance(expr, ast.This):
            return self.look_up_variable(expr.keyword, expr)
        elif isinstance(expr, ast.Super):
            return self.evaluate_super(expr)
        elif isinstance(expr, ast.FunctionLiteral):
            return LoxFunction(expr, self.environment)
        raise TypeError(f"Unknown expression node: {type(expr).__name__}")

    def look_up_variable(self, name: Token, expr: 'ast.Expr') -> Any:
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def evaluate_unary(self, expr: 'ast.Unary') -> Any:
        right = self.evaluate(expr.right)
        if expr.operator.type == TokenType.MINUS:
            check_number_operand(expr.operator, right)
            return -right
        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)
        raise TypeError(f"Unknown unary operator: {expr.operator.lexeme}")

    def evaluate_binary(self, expr: 'ast.Binary') -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        operator = expr.operator
        kind = operator.type

        if kind == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if kind == TokenType.BANG_EQUAL:
            return not is_equal(left, right)
        if kind == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            if isinstance(left, str) and isinstance(right, str):
                return left + right
            raise LoxRuntimeError(operator, "Operands must be two numbers or two strings.")

        check_number_operands(operator, left, right)
        if kind == TokenType.MINUS:
            return left - right
        if kind == TokenType.STAR:
            return left * right
        if kind == TokenType.SLASH:
            if right == 0:
                raise LoxRuntimeError(operator, "Division by zero.")
            return left / right
        if kind == TokenType.GREATER:
            return left > right
        if kind == TokenType.GREATER_EQUAL:
            return left >= right
        if kind == TokenType.LESS:
            return left < right
        if kind == TokenType.LESS_EQUAL:
            return left <= right
        raise TypeError(f"Unknown binary operator: {operator.lexeme}")

    def evaluate_call(self, expr: 'ast.Call') -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise LoxRuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")

        logger.debug(f"Calling {stringify(callee)} with {len(arguments)} arguments on line {expr.paren.line}")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def evaluate_super(self, expr: 'ast.Super') -> Any:
        distance = self.locals[expr]
        superclass = self.environment.get_at(distance, "super")
        # `this` always sits in the scope just inside the one holding `super`
        instance = self.environment.get_at(distance - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(instance)


def check_number_operand(operator: Token, operand: Any) -> None:
    if isinstance(operand, float):
        return
    raise LoxRuntimeError(operator, "Operand must be a number.")


def check_number_operands(operator: Token, left: Any, right: Any) -> None:
    if isinstance(left, float) and isinstance(right, float):
        return
    raise LoxRuntimeError(operator, "Operands must be numbers.")
