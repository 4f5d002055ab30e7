"""Concrete parse tree produced by the parser.

Branches are tagged with the grammar nonterminal that built them; leaves wrap
single tokens. Punctuation is kept so the analyzer can address children by
position.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Union

from .lexer import Token


class NonTerminal(Enum):
    PROGRAM = auto()
    STATEMENT = auto()
    EXPRESSION = auto()
    EXPRESSION_6 = auto()
    EXPRESSION_5 = auto()
    EXPRESSION_4 = auto()
    EXPRESSION_3 = auto()
    EXPRESSION_2 = auto()
    EXPRESSION_1 = auto()
    EXPRESSION_0 = auto()
    TYPE = auto()


@dataclass
class Leaf:
    token: Token


@dataclass
class Branch:
    kind: NonTerminal
    children: List["ParseNode"] = field(default_factory=list)

    def branches(self, kind: NonTerminal) -> List["Branch"]:
        return [c for c in self.children if isinstance(c, Branch) and c.kind == kind]


ParseNode = Union[Branch, Leaf]


__all__ = ["NonTerminal", "Leaf", "Branch", "ParseNode"]
