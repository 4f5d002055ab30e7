"""Semantic analysis for MiniPL.

Checks:
- Declare before use, declare once (one flat namespace, no shadowing)
- Static types: int, string, bool
- Definite initialization before any read
- Operator operand types, including chains like `a & b & c`
- Assert conditions and for-loop bounds

Lowers the parse tree into the typed AST consumed by the evaluator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from . import ast
from .errors import InternalError, InterpreterError, Stage
from .lexer import Token, TokenKind
from .parse_tree import Branch, Leaf, NonTerminal, ParseNode

logger = logging.getLogger(__name__)


class SemanticError(InterpreterError):
    stage = Stage.SEMANTIC
    exit_code = 5


@dataclass
class Symbol:
    name: str
    type: ast.Type
    initialized: bool = False


class SymbolTable:
    """Flat name -> Symbol mapping shared by the whole program."""

    def __init__(self):
        self._symbols: Dict[str, Symbol] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def declare(self, name: str, typ: ast.Type, initialized: bool = False) -> Symbol:
        symbol = Symbol(name, typ, initialized)
        self._symbols[name] = symbol
        return symbol

    def lookup(self, name: str) -> Optional[Symbol]:
        return self._symbols.get(name)


TYPE_KEYWORDS = {
    "int": ast.Type.INT,
    "string": ast.Type.STRING,
    "bool": ast.Type.BOOL,
}

OPERATORS = {
    "+": ast.Operator.ADD,
    "-": ast.Operator.SUB,
    "*": ast.Operator.MUL,
    "/": ast.Operator.DIV,
    "<": ast.Operator.LESS,
    "=": ast.Operator.EQUAL,
    "&": ast.Operator.AND,
    "!": ast.Operator.NOT,
}

ALLOWED_OPERAND_TYPES = {
    ast.Operator.ADD: {ast.Type.INT, ast.Type.STRING},
    ast.Operator.SUB: {ast.Type.INT},
    ast.Operator.MUL: {ast.Type.INT},
    ast.Operator.DIV: {ast.Type.INT},
    ast.Operator.LESS: {ast.Type.INT},
    ast.Operator.EQUAL: {ast.Type.INT, ast.Type.STRING, ast.Type.BOOL},
    ast.Operator.AND: {ast.Type.BOOL},
    ast.Operator.NOT: {ast.Type.BOOL},
}

COMPARISONS = {ast.Operator.LESS, ast.Operator.EQUAL}

CHAIN_LEVELS = {
    NonTerminal.EXPRESSION_6,
    NonTerminal.EXPRESSION_5,
    NonTerminal.EXPRESSION_4,
    NonTerminal.EXPRESSION_3,
    NonTerminal.EXPRESSION_2,
}


class Analyzer:
    def __init__(self, source: Optional[str] = None):
        self.source_lines = source.splitlines() if source is not None else []
        self.symbols = SymbolTable()

    def analyze(self, tree: ParseNode) -> ast.Program:
        self.symbols = SymbolTable()
        program = self._branch(tree, NonTerminal.PROGRAM)
        statements = [self._stmt(s) for s in program.branches(NonTerminal.STATEMENT)]
        logger.debug(
            "analyzed %d statements, %d symbols", len(statements), len(self.symbols)
        )
        return ast.Program(statements)

    # --- statements ---
    def _stmt(self, node: Branch) -> ast.Stmt:
        first = self._leaf(node.children[0]).token
        if first.kind == TokenKind.IDENT:
            return self._assignment(node)
        if first.kind == TokenKind.KEYWORD:
            if first.lexeme == "var":
                return self._declaration(node)
            if first.lexeme == "for":
                return self._for(node)
            if first.lexeme == "read":
                return self._read(node)
            if first.lexeme == "print":
                return ast.Print(self._expr(node.children[1]), token=first)
            if first.lexeme == "assert":
                return self._assert(node)
        raise InternalError(f"At {first.pos}: unhandled statement", first)

    def _declaration(self, node: Branch) -> ast.Declaration:
        start = self._leaf(node.children[0]).token
        name_tok = self._leaf(node.children[1]).token
        var_type = self._type(node.children[3])
        name = name_tok.lexeme

        if len(node.children) == 4:
            self._ensure_undeclared(name_tok)
            self.symbols.declare(name, var_type)
            return ast.Declaration(name, var_type, token=start)
        if len(node.children) == 6:
            init = self._expr(node.children[5])
            if init.type != var_type:
                self._err(
                    name_tok,
                    f'Can\'t assign value of type "{init.type}" to variable of '
                    f'type "{var_type}".',
                )
            self._ensure_undeclared(name_tok)
            self.symbols.declare(name, var_type, initialized=True)
            return ast.DeclarationWithInit(name, var_type, init, token=start)
        raise InternalError(f"At {start.pos}: malformed declaration", start)

    def _ensure_undeclared(self, name_tok: Token) -> None:
        if name_tok.lexeme in self.symbols:
            self._err(name_tok, f'Variable name "{name_tok.lexeme}" already in use.')

    def _assignment(self, node: Branch) -> ast.Assignment:
        target = self._var_ref(node.children[0])
        expr = self._expr(node.children[2])
        if expr.type != target.type:
            self._err(
                expr.token,
                f'Can\'t assign value of type "{expr.type}" to variable of '
                f'type "{target.type}".',
            )
        self._mark_initialized(target)
        return ast.Assignment(target, expr, token=target.token)

    def _for(self, node: Branch) -> ast.ForLoop:
        start_tok = self._leaf(node.children[0]).token
        var = self._var_ref(node.children[1])
        if var.type != ast.Type.INT:
            self._err(
                var.token,
                f'Expected a variable of type "int", not "{var.type}".',
            )
        # The loop itself writes the control variable.
        self._mark_initialized(var)

        start = self._expr(node.children[3])
        if start.type != ast.Type.INT:
            self._err(
                start.token,
                'Expression type should be "int" for start-expressions in for-loops.',
            )
        end = self._expr(node.children[5])
        if end.type != ast.Type.INT:
            self._err(
                end.token,
                'Expression type should be "int" for end-expressions in for-loops.',
            )

        body = [self._stmt(s) for s in node.branches(NonTerminal.STATEMENT)]
        return ast.ForLoop(var, start, end, body, token=start_tok)

    def _read(self, node: Branch) -> ast.Read:
        start = self._leaf(node.children[0]).token
        target = self._var_ref(node.children[1])
        self._mark_initialized(target)
        return ast.Read(target, token=start)

    def _assert(self, node: Branch) -> ast.Assert:
        start = self._leaf(node.children[0]).token
        expr = self._expr(node.children[2])
        if expr.type != ast.Type.BOOL:
            self._err(
                expr.token,
                f'Expected expression of type "bool" for assert, got "{expr.type}".',
            )
        return ast.Assert(expr, token=start)

    # --- expressions ---
    def _expr(self, node: ParseNode) -> ast.Expr:
        branch = self._branch(node)
        if branch.kind == NonTerminal.EXPRESSION:
            return self._expr(branch.children[0])
        if branch.kind in CHAIN_LEVELS:
            if len(branch.children) > 1:
                return self._binary(branch)
            return self._expr(branch.children[0])
        if branch.kind == NonTerminal.EXPRESSION_1:
            if len(branch.children) > 1:
                return self._unary(branch)
            return self._expr(branch.children[0])
        if branch.kind == NonTerminal.EXPRESSION_0:
            return self._primary(branch)
        raise InternalError(f"unexpected {branch.kind.name} in expression")

    def _primary(self, branch: Branch) -> ast.Expr:
        tok = self._leaf(branch.children[0]).token
        if tok.kind == TokenKind.NUMBER:
            return ast.IntLiteral(int(tok.lexeme), type=ast.Type.INT, token=tok)
        if tok.kind == TokenKind.STRING:
            return ast.StringLiteral(tok.lexeme, type=ast.Type.STRING, token=tok)
        if tok.kind == TokenKind.BOOL:
            return ast.BoolLiteral(tok.lexeme == "true", type=ast.Type.BOOL, token=tok)
        if tok.kind == TokenKind.IDENT:
            ref = self._var_ref(branch.children[0])
            # Used as a value, so it must have been written already.
            if not self.symbols.lookup(ref.name).initialized:
                self._err(tok, f'Variable "{ref.name}" read before initialized.')
            return ref
        if tok.kind == TokenKind.LPAREN:
            return self._expr(branch.children[1])
        raise InternalError(f"At {tok.pos}: unexpected primary", tok)

    def _unary(self, branch: Branch) -> ast.UnaryExpr:
        op_tok = self._leaf(branch.children[0]).token
        op = self._operator(op_tok)
        operand = self._expr(branch.children[1])
        if operand.type not in ALLOWED_OPERAND_TYPES[op]:
            self._err(
                operand.token,
                f'Expression type "{operand.type}" is incorrect for operator "{op}".',
            )
        return ast.UnaryExpr(op, operand, type=operand.type, token=op_tok)

    def _binary(self, branch: Branch) -> ast.BinaryExpr:
        # Children alternate operand, operator, operand, ...; a run of one
        # operator becomes one node, and a change of operator (`a + b - c`)
        # nests the run so far as the left operand. Comparisons yield bool, so
        # `a < b < c` nests after every pair.
        children = branch.children
        op = self._operator(self._leaf(children[1]).token)
        operands = [self._expr(children[0])]
        for i in range(1, len(children), 2):
            next_op = self._operator(self._leaf(children[i]).token)
            if next_op != op or (op in COMPARISONS and len(operands) == 2):
                operands = [self._typed_binary(op, operands)]
                op = next_op
            operands.append(self._expr(children[i + 1]))
        return self._typed_binary(op, operands)

    def _typed_binary(
        self, op: ast.Operator, operands: List[ast.Expr]
    ) -> ast.BinaryExpr:
        distinct: List[ast.Expr] = []
        for operand in operands:
            if all(operand.type != seen.type for seen in distinct):
                distinct.append(operand)
        if len(distinct) > 1:
            details = "".join(
                f"\tExpression operand starting at {e.token.pos} is of type "
                f'"{e.type}".\n'
                for e in distinct
            )
            self._err(
                operands[0].token,
                "Multiple operand types used in one expression:\n" + details,
            )

        first = operands[0]
        if first.type not in ALLOWED_OPERAND_TYPES[op]:
            self._err(
                first.token,
                f'Expression type "{first.type}" is incorrect for operator "{op}".',
            )

        result = ast.Type.BOOL if op in COMPARISONS else first.type
        return ast.BinaryExpr(op, operands, type=result, token=first.token)

    def _var_ref(self, node: ParseNode) -> ast.VarRef:
        tok = self._leaf(node).token
        symbol = self.symbols.lookup(tok.lexeme)
        if symbol is None:
            self._err(tok, f'Reference to undeclared variable "{tok.lexeme}".')
        return ast.VarRef(symbol.name, type=symbol.type, token=tok)

    def _mark_initialized(self, ref: ast.VarRef) -> None:
        self.symbols.lookup(ref.name).initialized = True

    # --- tree helpers ---
    def _type(self, node: ParseNode) -> ast.Type:
        branch = self._branch(node, NonTerminal.TYPE)
        tok = self._leaf(branch.children[0]).token
        if tok.lexeme not in TYPE_KEYWORDS:
            raise InternalError(f'At {tok.pos}: unknown type "{tok.lexeme}"', tok)
        return TYPE_KEYWORDS[tok.lexeme]

    def _operator(self, tok: Token) -> ast.Operator:
        if tok.lexeme not in OPERATORS:
            raise InternalError(f'At {tok.pos}: unknown operator "{tok.lexeme}"', tok)
        return OPERATORS[tok.lexeme]

    def _branch(self, node: ParseNode, kind: Optional[NonTerminal] = None) -> Branch:
        if not isinstance(node, Branch) or (kind is not None and node.kind != kind):
            expected = kind.name if kind else "branch"
            raise InternalError(f"expected {expected}, got {node}")
        return node

    def _leaf(self, node: ParseNode) -> Leaf:
        if not isinstance(node, Leaf):
            raise InternalError(f"expected token, got {node}")
        return node

    # --- error reporting ---
    def _err(self, tok: Token, msg: str):
        text = f"At {tok.pos}: {msg}"
        if 1 <= tok.line <= len(self.source_lines):
            src_line = self.source_lines[tok.line - 1]
            caret = " " * (tok.col - 1 if tok.col > 0 else 0) + "^"
            text = f"{text.rstrip()}\n    {src_line}\n    {caret}"
        raise SemanticError(text, tok)


__all__ = ["Analyzer", "SemanticError", "Symbol", "SymbolTable"]
