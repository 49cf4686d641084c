from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from jaktc.core.span import Span


@dataclass
class TypeExpr:
    name: str
    span: Span


@dataclass
class Param:
    name: str
    type_expr: TypeExpr
    span: Span
    anon: bool = False
    mutable: bool = False


@dataclass
class Block:
    statements: List["Stmt"]
    span: Span


@dataclass
class FunctionDecl:
    name: str
    params: List[Param]
    return_type: Optional[TypeExpr]
    body: Block
    span: Span
    throws: bool = False


@dataclass
class Program:
    functions: List[FunctionDecl] = field(default_factory=list)


# --- statements ------------------------------------------------------------


class Stmt:
    span: Span


@dataclass
class LetStmt(Stmt):
    name: str
    type_expr: Optional[TypeExpr]
    value: "Expr"
    span: Span
    mutable: bool = False


@dataclass
class AssignStmt(Stmt):
    name: str
    op: str  # "=", "+=", "-=", ...
    value: "Expr"
    span: Span


@dataclass
class IfStmt(Stmt):
    cond: "Expr"
    then_block: Block
    span: Span
    # Either a Block or a nested IfStmt (`else if`).
    else_branch: Optional[Block | "IfStmt"] = None


@dataclass
class WhileStmt(Stmt):
    cond: "Expr"
    body: Block
    span: Span


@dataclass
class LoopStmt(Stmt):
    body: Block
    span: Span


@dataclass
class BreakStmt(Stmt):
    span: Span


@dataclass
class ContinueStmt(Stmt):
    span: Span


@dataclass
class ReturnStmt(Stmt):
    value: Optional["Expr"]
    span: Span


@dataclass
class BlockStmt(Stmt):
    block: Block
    span: Span


@dataclass
class ExprStmt(Stmt):
    expr: "Expr"
    span: Span


# --- expressions -----------------------------------------------------------


class Expr:
    span: Span


@dataclass(eq=False)
class NumberLit(Expr):
    text: str
    span: Span

    @property
    def is_float(self) -> bool:
        return "." in self.text


@dataclass(eq=False)
class StringLit(Expr):
    value: str
    span: Span


@dataclass(eq=False)
class BoolLit(Expr):
    value: bool
    span: Span


@dataclass(eq=False)
class Name(Expr):
    ident: str
    span: Span


@dataclass(eq=False)
class Arg:
    label: Optional[str]
    value: Expr
    span: Span


@dataclass(eq=False)
class Call(Expr):
    callee: str
    args: List[Arg]
    span: Span


@dataclass(eq=False)
class Unary(Expr):
    op: str  # "-", "not"
    operand: Expr
    span: Span


@dataclass(eq=False)
class Binary(Expr):
    op: str
    left: Expr
    right: Expr
    span: Span
