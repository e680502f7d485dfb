from typing import Any, Dict, Optional

from treelox.errors import LoxRuntimeError
from treelox.tokens import Token


class Environment:
    """One lexical scope: variable bindings plus a link to the enclosing scope.

    Closures hold on to the Environment they were declared in, so a scope
    lives as long as any function that captured it.
    """

    def __init__(self, enclosing: Optional['Environment'] = None, values: Optional[Dict[str, Any]] = None):
        self.enclosing = enclosing
        self.values: Dict[str, Any] = dict(values) if values else {}

    def define(self, name: str, value: Any) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look `name` up along the chain, innermost scope first"""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Any) -> None:
        env = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Any:
        return self.ancestor(distance).values[name]

    def assign_at(self, distance: int, name: Token, value: Any) -> None:
        self.ancestor(distance).values[name.lexeme] = value

    def copy(self) -> 'Environment':
        """Sibling scope with the same parent and a snapshot of the bindings"""
        return Environment(self.enclosing, self.values)

    def __repr__(self) -> str:
        depth = 0
        env = self.enclosing
        while env is not None:
            depth += 1
            env = env.enclosing
        return f"Environment(depth={depth}, names={sorted(self.values)})"
