"""Runtime values and the rules that apply to them.

Lox values map onto Python objects: nil is None, booleans are bool,
numbers are float and strings are str. Everything callable derives from
LoxCallable; instances are LoxInstance.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from treelox.environment import Environment
from treelox.errors import LoxRuntimeError
from treelox.tokens import Token
import treelox.treelox_ast as ast

if TYPE_CHECKING:
    from treelox.interpreter import Interpreter


# -------------------------------------------------------- control-flow signal

class Normal:
    """Statement completed; execution continues with the next one"""

    def __repr__(self) -> str:
        return "NORMAL"


NORMAL = Normal()


@dataclass(frozen=True)
class Returned:
    """A `return` ran; unwinds to the nearest call boundary"""
    value: Any


# ----------------------------------------------------------------- callables

class LoxCallable:
    def arity(self) -> int:
        raise NotImplementedError

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        raise NotImplementedError


class NativeFunction(LoxCallable):
    def __init__(self, name: str, arity: int, function: Callable[..., Any]):
        self.name = name
        self._arity = arity
        self.function = function

    def arity(self) -> int:
        return self._arity

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        return self.function(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    """A user function: its declaration plus the environment it closes over"""

    def __init__(self, declaration: 'ast.FunctionNode', closure: Environment, is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> Optional[str]:
        if isinstance(self.declaration, ast.Function):
            return self.declaration.name.lexeme
        return None

    def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
        """Method value with `this` bound in a one-entry scope over the closure"""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def arity(self) -> int:
        return len(self.declaration.params)

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        signal = interpreter.execute_block(self.declaration.body, environment)
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        if isinstance(signal, Returned):
            return signal.value
        return None

    def __str__(self) -> str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"


class LoxClass(LoxCallable):
    def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name


class LoxInstance:
    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"<{self.klass.name} instance>"


# --------------------------------------------------------------- value rules

def is_truthy(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is None and b is None
    # Python treats True == 1.0; Lox keeps the types apart
    if isinstance(a, (bool, float, str)) or isinstance(b, (bool, float, str)):
        return type(a) is type(b) and a == b
    return a is b


def stringify(value: Any) -> str:
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "inf" if value > 0 else "-inf"
        if value.is_integer():
            if value == 0 and math.copysign(1.0, value) < 0:
                return "-0"
            return str(int(value))
        return repr(value)
    return str(value)


def native_functions() -> List[NativeFunction]:
    """Natives installed into every fresh global scope"""
    return [
        NativeFunction("clock", 0, lambda: float(time.time())),
    ]
