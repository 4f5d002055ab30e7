"""
MiniPL lexer.

Tokenizes keywords, identifiers, numbers, strings, and operators. Characters
that belong to no token class are collected and reported together once the
whole source has been scanned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional

from .errors import InterpreterError, Stage

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    LPAREN = auto()
    RPAREN = auto()
    ASSIGN = auto()
    BINARY_OP = auto()
    UNARY_OP = auto()
    COLON = auto()
    SEMICOLON = auto()

    # Literals / identifiers
    IDENT = auto()
    NUMBER = auto()
    STRING = auto()
    BOOL = auto()

    # Keywords (store lexeme to disambiguate in parser)
    KEYWORD = auto()

    RANGE = auto()
    EOF = auto()

    # Never leaves the lexer: scan() fails if any are found
    UNKNOWN = auto()


KEYWORDS = {
    "var",
    "for",
    "end",
    "in",
    "do",
    "read",
    "print",
    "int",
    "string",
    "bool",
    "assert",
}

BOOL_LITERALS = {"true", "false"}

BINARY_OPERATORS = "+-*/<=&"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    line: int
    col: int

    @property
    def pos(self) -> str:
        return f"line {self.line}, col {self.col}"


class LexerError(InterpreterError):
    stage = Stage.SCANNING
    exit_code = 3


class Lexer:
    def __init__(self, source: str):
        self.source = source
        self.length = len(source)
        self.pos = 0
        self.line = 1
        self.col = 1
        self.tokens: List[Token] = []
        self.start = 0
        self.start_line = 1
        self.start_col = 1

    def scan(self) -> List[Token]:
        while not self._is_at_end():
            self.start = self.pos
            self.start_line = self.line
            self.start_col = self.col
            c = self._advance()

            # Whitespace / newlines
            if c in " \t\r":
                continue
            if c == "\n":
                self.line += 1
                self.col = 1
                continue

            if c == '"':
                self._string()
                continue

            if c.isdecimal():
                self._number()
                continue

            if c.isalpha():
                self._identifier()
                continue

            if c == ":":
                if self._match("="):
                    self._add(TokenKind.ASSIGN)
                else:
                    self._add(TokenKind.COLON)
                continue
            if c == ".":
                if self._match("."):
                    self._add(TokenKind.RANGE)
                else:
                    self._add(TokenKind.UNKNOWN)
                continue
            if c in BINARY_OPERATORS:
                self._add(TokenKind.BINARY_OP)
                continue
            if c == "!":
                self._add(TokenKind.UNARY_OP)
                continue
            if c == ";":
                self._add(TokenKind.SEMICOLON)
                continue
            if c == "(":
                self._add(TokenKind.LPAREN)
                continue
            if c == ")":
                self._add(TokenKind.RPAREN)
                continue

            self._add(TokenKind.UNKNOWN)

        unknowns = [t for t in self.tokens if t.kind == TokenKind.UNKNOWN]
        if unknowns:
            details = "".join(
                f'Unknown token "{t.lexeme}" at {t.pos}.\n' for t in unknowns
            )
            raise LexerError("Unknown tokens found:\n" + details, unknowns[0])

        self.tokens.append(Token(TokenKind.EOF, "", self.line, self.col))
        logger.debug("scanned %d tokens", len(self.tokens))
        return self.tokens

    def _add(self, kind: TokenKind, lexeme: Optional[str] = None) -> None:
        text = lexeme if lexeme is not None else self.source[self.start : self.pos]
        self.tokens.append(Token(kind, text, self.start_line, self.start_col))

    def _is_at_end(self) -> bool:
        return self.pos >= self.length

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        self.col += 1
        return ch

    def _peek(self) -> str:
        if self._is_at_end():
            return "\0"
        return self.source[self.pos]

    def _match(self, expected: str) -> bool:
        if self._is_at_end() or self.source[self.pos] != expected:
            return False
        self.pos += 1
        self.col += 1
        return True

    def _string(self) -> None:
        # Content is kept raw; print expands the \n escape.
        while not self._is_at_end():
            ch = self._advance()
            if ch == '"':
                lexeme = self.source[self.start + 1 : self.pos - 1]
                self._add(TokenKind.STRING, lexeme)
                return
            if ch == "\n":
                self.line += 1
                self.col = 1
        raise LexerError(
            "Ran out of characters while building string starting at "
            f"line {self.start_line}, col {self.start_col}."
        )

    def _number(self) -> None:
        while self._peek().isdecimal():
            self._advance()
        self._add(TokenKind.NUMBER)

    def _identifier(self) -> None:
        while self._peek().isalnum() or self._peek() == "_":
            self._advance()
        text = self.source[self.start : self.pos]
        if text in BOOL_LITERALS:
            self._add(TokenKind.BOOL, text)
        elif text in KEYWORDS:
            self._add(TokenKind.KEYWORD, text)
        else:
            self._add(TokenKind.IDENT, text)


__all__ = ["Lexer", "Token", "TokenKind", "LexerError", "KEYWORDS"]
