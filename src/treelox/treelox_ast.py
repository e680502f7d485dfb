"""Expression and statement trees produced by the parser.

Nodes are immutable and compare by identity: the resolver keys its
hop-count table on the node objects themselves, so two textually equal
references (say, two uses of `a` on one line) must stay distinct keys.

`Expr` and `Stmt` are closed unions. Passes dispatch on them with an
isinstance chain that ends in an error for an unknown node kind.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from treelox.tokens import Literal as LiteralValue, Token


class Node:
    pass


# ---------------------------------------------------------------- expressions

@dataclass(frozen=True, eq=False)
class Literal(Node):
    value: Union[LiteralValue, bool]


@dataclass(frozen=True, eq=False)
class Variable(Node):
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Node):
    name: Token
    value: 'Expr'


@dataclass(frozen=True, eq=False)
class Unary(Node):
    operator: Token
    right: 'Expr'


@dataclass(frozen=True, eq=False)
class Binary(Node):
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True, eq=False)
class Logical(Node):
    left: 'Expr'
    operator: Token
    right: 'Expr'


@dataclass(frozen=True, eq=False)
class Call(Node):
    callee: 'Expr'
    paren: Token  # closing paren, for error lines
    arguments: List['Expr']


@dataclass(frozen=True, eq=False)
class Get(Node):
    object: 'Expr'
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Node):
    object: 'Expr'
    name: Token
    value: 'Expr'


@dataclass(frozen=True, eq=False)
class This(Node):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Node):
    keyword: Token
    method: Token


@dataclass(frozen=True, eq=False)
class Grouping(Node):
    expression: 'Expr'


@dataclass(frozen=True, eq=False)
class FunctionLiteral(Node):
    keyword: Token
    params: List[Token]
    body: List['Stmt']


Expr = Union[Literal, Variable, Assign, Unary, Binary, Logical, Call, Get, Set,
             This, Super, Grouping, FunctionLiteral]


# ----------------------------------------------------------------- statements

@dataclass(frozen=True, eq=False)
class Expression(Node):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Print(Node):
    expression: Expr


@dataclass(frozen=True, eq=False)
class Var(Node):
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Block(Node):
    statements: List['Stmt']


@dataclass(frozen=True, eq=False)
class If(Node):
    condition: Expr
    then_branch: 'Stmt'
    else_branch: Optional['Stmt'] = None


@dataclass(frozen=True, eq=False)
class While(Node):
    """Loop statement; `for` loops are lowered onto it.

    `increment` runs after the body on every iteration. With
    `per_iteration` set the loop runs each iteration in a fresh copy of the
    scope holding the loop variables, so closures created in the body keep
    that iteration's values.
    """
    condition: Expr
    body: 'Stmt'
    increment: Optional[Expr] = None
    per_iteration: bool = False


@dataclass(frozen=True, eq=False)
class Function(Node):
    name: Token
    params: List[Token]
    body: List['Stmt']


@dataclass(frozen=True, eq=False)
class Return(Node):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Class(Node):
    name: Token
    superclass: Optional[Variable]
    methods: List[Function]


Stmt = Union[Expression, Print, Var, Block, If, While, Function, Return, Class]

FunctionNode = Union[Function, FunctionLiteral]
