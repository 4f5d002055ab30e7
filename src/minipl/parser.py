"""Recursive-descent parser for MiniPL.

Builds a concrete parse tree with one nonterminal per precedence level, so a
level branch holding a single child is a pass-through to the next tighter
level.
"""

from __future__ import annotations

import logging
from typing import List

from . import lexer
from .errors import InterpreterError, Stage
from .parse_tree import Branch, Leaf, NonTerminal

logger = logging.getLogger(__name__)

TYPE_NAMES = ("int", "string", "bool")

# Parentheses and `!` each open one level; the later stages recurse per level.
MAX_NESTING = 48


class ParseError(InterpreterError):
    stage = Stage.PARSING
    exit_code = 4


class Parser:
    def __init__(self, tokens: List[lexer.Token]):
        self.tokens = tokens
        self.current = 0
        self.depth = 0

    def parse(self) -> Branch:
        self.depth = 0
        logger.debug("parsing %d tokens", len(self.tokens))
        children = []
        while True:
            children.append(self._statement())
            children.append(self._consume(lexer.TokenKind.SEMICOLON))
            if self._is_at_end():
                break
        return Branch(NonTerminal.PROGRAM, children)

    # --- statements ---
    def _statement(self) -> Branch:
        tok = self._peek()
        if tok.kind == lexer.TokenKind.IDENT:
            return self._assignment()
        if self._check_kw("var"):
            return self._declaration()
        if self._check_kw("for"):
            return self._for()
        if self._check_kw("read"):
            return self._statement_of(
                self._consume_kw("read"), self._consume(lexer.TokenKind.IDENT)
            )
        if self._check_kw("print"):
            return self._statement_of(self._consume_kw("print"), self._expression())
        if self._check_kw("assert"):
            return self._statement_of(
                self._consume_kw("assert"),
                self._consume(lexer.TokenKind.LPAREN),
                self._expression(),
                self._consume(lexer.TokenKind.RPAREN),
            )
        raise ParseError(f"At {tok.pos}: Expected start of statement.", tok)

    def _statement_of(self, *children) -> Branch:
        return Branch(NonTerminal.STATEMENT, list(children))

    def _declaration(self) -> Branch:
        children = [
            self._consume_kw("var"),
            self._consume(lexer.TokenKind.IDENT),
            self._consume(lexer.TokenKind.COLON),
            self._type(),
        ]
        if self._check_kind(lexer.TokenKind.ASSIGN):
            children.append(self._consume(lexer.TokenKind.ASSIGN))
            children.append(self._expression())
        return Branch(NonTerminal.STATEMENT, children)

    def _assignment(self) -> Branch:
        return self._statement_of(
            self._consume(lexer.TokenKind.IDENT),
            self._consume(lexer.TokenKind.ASSIGN),
            self._expression(),
        )

    def _for(self) -> Branch:
        children = [
            self._consume_kw("for"),
            self._consume(lexer.TokenKind.IDENT),
            self._consume_kw("in"),
            self._expression(),
            self._consume(lexer.TokenKind.RANGE),
            self._expression(),
            self._consume_kw("do"),
        ]
        # The body holds at least one statement.
        while True:
            children.append(self._statement())
            children.append(self._consume(lexer.TokenKind.SEMICOLON))
            if self._check_kw("end"):
                break
        children.append(self._consume_kw("end"))
        children.append(self._consume_kw("for"))
        return Branch(NonTerminal.STATEMENT, children)

    def _type(self) -> Branch:
        for name in TYPE_NAMES:
            if self._check_kw(name):
                return Branch(NonTerminal.TYPE, [self._consume_kw(name)])
        tok = self._peek()
        raise ParseError(f'At {tok.pos}: Unknown type "{tok.lexeme}".', tok)

    # --- expressions ---
    def _expression(self) -> Branch:
        return Branch(NonTerminal.EXPRESSION, [self._expr6()])

    def _expr6(self) -> Branch:
        return self._chain(NonTerminal.EXPRESSION_6, self._expr5, {"&"})

    def _expr5(self) -> Branch:
        return self._chain(NonTerminal.EXPRESSION_5, self._expr4, {"="})

    def _expr4(self) -> Branch:
        return self._chain(NonTerminal.EXPRESSION_4, self._expr3, {"<"})

    def _expr3(self) -> Branch:
        return self._chain(NonTerminal.EXPRESSION_3, self._expr2, {"+", "-"})

    def _expr2(self) -> Branch:
        return self._chain(NonTerminal.EXPRESSION_2, self._expr1, {"*", "/"})

    def _chain(self, kind: NonTerminal, operand, operators: set[str]) -> Branch:
        children = [operand()]
        while self._check_op(lexer.TokenKind.BINARY_OP, operators):
            children.append(Leaf(self._advance()))
            children.append(operand())
        return Branch(kind, children)

    def _expr1(self) -> Branch:
        if self._check_op(lexer.TokenKind.UNARY_OP, {"!"}):
            self._enter()
            op = Leaf(self._advance())
            node = Branch(NonTerminal.EXPRESSION_1, [op, self._expr1()])
            self.depth -= 1
            return node
        return Branch(NonTerminal.EXPRESSION_1, [self._expr0()])

    def _expr0(self) -> Branch:
        tok = self._peek()
        if tok.kind in {
            lexer.TokenKind.NUMBER,
            lexer.TokenKind.STRING,
            lexer.TokenKind.IDENT,
            lexer.TokenKind.BOOL,
        }:
            return Branch(NonTerminal.EXPRESSION_0, [Leaf(self._advance())])
        if tok.kind == lexer.TokenKind.LPAREN:
            self._enter()
            children = [
                Leaf(self._advance()),
                self._expression(),
                self._consume(lexer.TokenKind.RPAREN),
            ]
            self.depth -= 1
            return Branch(NonTerminal.EXPRESSION_0, children)
        raise self._unexpected()

    # --- helpers ---
    def _enter(self) -> None:
        self.depth += 1
        if self.depth > MAX_NESTING:
            tok = self._peek()
            raise ParseError(
                f"At {tok.pos}: Expression nested deeper than {MAX_NESTING} levels.",
                tok,
            )

    def _consume(self, kind: lexer.TokenKind) -> Leaf:
        if self._check_kind(kind):
            return Leaf(self._advance())
        raise self._unexpected()

    def _consume_kw(self, kw: str) -> Leaf:
        if self._check_kw(kw):
            return Leaf(self._advance())
        raise self._unexpected()

    def _unexpected(self) -> ParseError:
        tok = self._peek()
        if tok.kind == lexer.TokenKind.EOF:
            return ParseError(f"At {tok.pos}: Unexpected end of input.", tok)
        return ParseError(f'At {tok.pos}: Unexpected token "{tok.lexeme}".', tok)

    def _check_kw(self, kw: str) -> bool:
        t = self._peek()
        return t.kind == lexer.TokenKind.KEYWORD and t.lexeme == kw

    def _check_op(self, kind: lexer.TokenKind, lexemes: set[str]) -> bool:
        t = self._peek()
        return t.kind == kind and t.lexeme in lexemes

    def _check_kind(self, kind: lexer.TokenKind) -> bool:
        return self._peek().kind == kind

    def _advance(self) -> lexer.Token:
        tok = self.tokens[self.current]
        if not self._is_at_end():
            self.current += 1
        return tok

    def _peek(self) -> lexer.Token:
        return self.tokens[self.current]

    def _is_at_end(self) -> bool:
        return self._peek().kind == lexer.TokenKind.EOF


__all__ = ["Parser", "ParseError"]
