"""Typed AST for MiniPL, produced by the analyzer and run by the evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List

from .lexer import Token


class Type(Enum):
    INT = "int"
    STRING = "string"
    BOOL = "bool"

    def __str__(self) -> str:
        return self.value


class Operator(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    LESS = "<"
    EQUAL = "="
    AND = "&"
    NOT = "!"

    def __str__(self) -> str:
        return self.value


# Base node: the token the construct starts at
@dataclass(kw_only=True)
class Node:
    token: Token

    @property
    def line(self) -> int:
        return self.token.line

    @property
    def col(self) -> int:
        return self.token.col


# Expressions
@dataclass(kw_only=True)
class Expr(Node):
    type: Type


@dataclass
class IntLiteral(Expr):
    value: int


@dataclass
class StringLiteral(Expr):
    value: str


@dataclass
class BoolLiteral(Expr):
    value: bool


@dataclass
class VarRef(Expr):
    name: str


@dataclass
class UnaryExpr(Expr):
    op: Operator
    operand: Expr


@dataclass
class BinaryExpr(Expr):
    op: Operator
    operands: List[Expr]  # two or more, folded left to right


# Statements
@dataclass
class Stmt(Node):
    pass


@dataclass
class Declaration(Stmt):
    name: str
    var_type: Type


@dataclass
class DeclarationWithInit(Declaration):
    init: Expr


@dataclass
class Assignment(Stmt):
    target: VarRef
    expr: Expr


@dataclass
class ForLoop(Stmt):
    var: VarRef
    start: Expr
    end: Expr
    body: List[Stmt]


@dataclass
class Read(Stmt):
    target: VarRef


@dataclass
class Print(Stmt):
    expr: Expr


@dataclass
class Assert(Stmt):
    expr: Expr


@dataclass
class Program:
    statements: List[Stmt]


__all__ = [
    "Type",
    "Operator",
    "Node",
    "Expr",
    "IntLiteral",
    "StringLiteral",
    "BoolLiteral",
    "VarRef",
    "UnaryExpr",
    "BinaryExpr",
    "Stmt",
    "Declaration",
    "DeclarationWithInit",
    "Assignment",
    "ForLoop",
    "Read",
    "Print",
    "Assert",
    "Program",
]
