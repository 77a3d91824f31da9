"""Abstract syntax tree for the treelox language.

Nodes are plain dataclasses forming two closed families, Expr and Stmt. Every node class has a `kind` tag, which the
resolver, interpreter and printers use to pick the function that handles it. Nodes compare by identity (eq=False): two
structurally identical expressions in different places of a program are different nodes.

Variable, Assign and This nodes have a `depth` slot, filled in by the resolver with the number of scopes between the
node and the scope its name was declared in. A depth of None means the name is global.
"""

from collections import deque
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, List, Optional

from treelox.syntax.tokens import Token


class Expr:
    """Superclass of all expression nodes."""
    kind: ClassVar[str]


class Stmt:
    """Superclass of all statement nodes."""
    kind: ClassVar[str]


# ---------------------------------------------------------------------------------------------------------------------
# expressions

@dataclass(eq=False)
class Assign(Expr):
    kind = "assign"
    name: Token
    value: Expr
    depth: Optional[int] = field(default=None, repr=False)


@dataclass(eq=False)
class Ternary(Expr):
    kind = "ternary"
    condition: Expr
    then_branch: Expr
    else_branch: Expr


@dataclass(eq=False)
class Binary(Expr):
    kind = "binary"
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Call(Expr):
    kind = "call"
    callee: Expr
    paren: Token  # closing paren, for error lines
    arguments: List[Expr]


@dataclass(eq=False)
class Get(Expr):
    kind = "get"
    object: Expr
    name: Token


@dataclass(eq=False)
class Grouping(Expr):
    kind = "grouping"
    expression: Expr


@dataclass(eq=False)
class Literal(Expr):
    kind = "literal"
    value: Any


@dataclass(eq=False)
class Logical(Expr):
    kind = "logical"
    left: Expr
    operator: Token
    right: Expr


@dataclass(eq=False)
class Set(Expr):
    kind = "set"
    object: Expr
    name: Token
    value: Expr


@dataclass(eq=False)
class This(Expr):
    kind = "this"
    keyword: Token
    depth: Optional[int] = field(default=None, repr=False)


@dataclass(eq=False)
class Unary(Expr):
    kind = "unary"
    operator: Token
    right: Expr


@dataclass(eq=False)
class Variable(Expr):
    kind = "variable"
    name: Token
    depth: Optional[int] = field(default=None, repr=False)


@dataclass(eq=False)
class Lambda(Expr):
    kind = "lambda"
    keyword: Token
    params: List[Token]
    body: List[Stmt]


# ---------------------------------------------------------------------------------------------------------------------
# statements

@dataclass(eq=False)
class Block(Stmt):
    kind = "block"
    statements: List[Stmt]


@dataclass(eq=False)
class Function(Stmt):
    kind = "function"
    name: Token
    params: List[Token]
    body: List[Stmt]


@dataclass(eq=False)
class Class(Stmt):
    kind = "class"
    name: Token
    methods: List[Function]
    static_methods: List[Function]


@dataclass(eq=False)
class Expression(Stmt):
    kind = "expression"
    expression: Expr


@dataclass(eq=False)
class If(Stmt):
    kind = "if"
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(eq=False)
class While(Stmt):
    kind = "while"
    condition: Expr
    body: Stmt


@dataclass(eq=False)
class Print(Stmt):
    kind = "print"
    expression: Expr


@dataclass(eq=False)
class Return(Stmt):
    kind = "return"
    keyword: Token
    value: Optional[Expr]


@dataclass(eq=False)
class Var(Stmt):
    kind = "var"
    name: Token
    initializer: Optional[Expr]


@dataclass(eq=False)
class MultiVar(Stmt):
    """One or more comma separated declarations sharing a single "var" and ";"."""
    kind = "multi_var"
    declarations: List[Var]


def first_token(node):
    """Token closest to the root of node's tree, or None if it has none. Used to give errors a line when the tree is too
    deep to walk recursively, so the search is breadth first and iterative.
    """
    queue = deque([node])
    while queue:
        current = queue.popleft()
        for item in fields(current):
            value = getattr(current, item.name)
            for child in (value if isinstance(value, list) else [value]):
                if isinstance(child, Token):
                    return child
                if isinstance(child, (Expr, Stmt)):
                    queue.append(child)
    return None
