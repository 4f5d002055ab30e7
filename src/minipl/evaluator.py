"""Tree-walking evaluator for the typed MiniPL AST."""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass
from typing import Dict, Optional, TextIO, Union

from . import ast
from .errors import InternalError, InterpreterError, Stage

logger = logging.getLogger(__name__)

PyValue = Union[int, str, bool]

PY_TYPES = {
    ast.Type.INT: int,
    ast.Type.STRING: str,
    ast.Type.BOOL: bool,
}

ZERO_VALUES = {
    ast.Type.INT: 0,
    ast.Type.STRING: "",
    ast.Type.BOOL: False,
}

# ASCII digits only, unlike int() which also takes "1_000" and other scripts
INT_INPUT = re.compile(r"\s*[+-]?[0-9]+\s*")


class EvaluationError(InterpreterError):
    stage = Stage.EXECUTION
    exit_code = 6


class AssertionFailure(InterpreterError):
    """A user `assert` evaluated to false: the program reports its own failure."""

    stage = Stage.ASSERTION
    exit_code = 7


@dataclass(frozen=True)
class RuntimeValue:
    type: ast.Type
    value: PyValue

    def __post_init__(self):
        # bool is an int subclass, so compare exact types
        if type(self.value) is not PY_TYPES[self.type]:
            raise InternalError(f"{self.value!r} is not a valid {self.type} value")

    @classmethod
    def zero(cls, typ: ast.Type) -> "RuntimeValue":
        return cls(typ, ZERO_VALUES[typ])

    def __str__(self) -> str:
        return str(self.value)


class VariableStore:
    """Identifier -> RuntimeValue; every write is checked against the slot's tag."""

    def __init__(self):
        self._values: Dict[str, RuntimeValue] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._values

    def declare(self, name: str, typ: ast.Type) -> None:
        self._values[name] = RuntimeValue.zero(typ)

    def get(self, name: str) -> RuntimeValue:
        if name not in self._values:
            raise InternalError(f'variable "{name}" read before declaration')
        return self._values[name]

    def assign(self, name: str, value: RuntimeValue) -> None:
        current = self.get(name)
        if current.type != value.type:
            raise InternalError(
                f'cannot store {value.type} value in {current.type} variable "{name}"'
            )
        self._values[name] = value

    def snapshot(self) -> Dict[str, PyValue]:
        return {name: v.value for name, v in self._values.items()}


class Evaluator:
    def __init__(
        self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None
    ):
        self._stdin = stdin
        self._stdout = stdout
        self.store = VariableStore()
        self._loop_depth = 0

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    def evaluate(self, program: ast.Program) -> None:
        self.store = VariableStore()
        self._loop_depth = 0
        logger.debug("executing %d statements", len(program.statements))
        for stmt in program.statements:
            self._exec(stmt)
        self.stdout.flush()

    # --- statements ---
    def _exec(self, node: ast.Stmt) -> None:
        # DeclarationWithInit extends Declaration, so it is tested first.
        if isinstance(node, ast.DeclarationWithInit):
            self._declare(node)
            self.store.assign(node.name, self._eval(node.init))
            return
        if isinstance(node, ast.Declaration):
            self._declare(node)
            return
        if isinstance(node, ast.Assignment):
            self.store.assign(node.target.name, self._eval(node.expr))
            return
        if isinstance(node, ast.ForLoop):
            self._for(node)
            return
        if isinstance(node, ast.Read):
            self._read(node)
            return
        if isinstance(node, ast.Print):
            self._print(node)
            return
        if isinstance(node, ast.Assert):
            if not self._eval_as(node.expr, bool):
                raise AssertionFailure(
                    f"Assert on line {node.line} failed.", node.token
                )
            return
        raise InternalError(f"unhandled statement {node}")

    def _declare(self, node: ast.Declaration) -> None:
        # Loop bodies re-run their declarations on every iteration.
        if node.name in self.store and self._loop_depth == 0:
            raise InternalError(
                f'At line {node.line}: re-declaration of variable "{node.name}"',
                node.token,
            )
        self.store.declare(node.name, node.var_type)

    def _for(self, node: ast.ForLoop) -> None:
        name = node.var.name
        start = self._eval_as(node.start, int)
        end = self._eval_as(node.end, int)
        step = 1 if start <= end else -1
        logger.debug("for %s in %d..%d", name, start, end)

        i = start
        self.store.assign(name, RuntimeValue(ast.Type.INT, i))
        self._loop_depth += 1
        try:
            while (i <= end) if step > 0 else (i >= end):
                for stmt in node.body:
                    self._exec(stmt)
                i += step
                self.store.assign(name, RuntimeValue(ast.Type.INT, i))
        finally:
            self._loop_depth -= 1

    def _read(self, node: ast.Read) -> None:
        target = node.target
        self.stdout.flush()
        line = self.stdin.readline()
        if line == "":
            raise EvaluationError(
                f'At line {node.line}: no input left to read into "{target.name}".',
                node.token,
            )
        text = line.rstrip("\r\n")

        if target.type == ast.Type.STRING:
            value = text
        elif target.type == ast.Type.INT:
            if not INT_INPUT.fullmatch(text):
                raise EvaluationError(
                    f'At line {node.line}: could not parse read input "{text}" '
                    'to type "int".',
                    node.token,
                )
            value = int(text)
        elif target.type == ast.Type.BOOL:
            lowered = text.strip().lower()
            if lowered not in {"true", "false"}:
                raise EvaluationError(
                    f'At line {node.line}: could not parse read input "{text}" '
                    'to type "bool".',
                    node.token,
                )
            value = lowered == "true"
        else:
            raise InternalError(f"unhandled read type {target.type}", node.token)
        self.store.assign(target.name, RuntimeValue(target.type, value))

    def _print(self, node: ast.Print) -> None:
        value = self._eval(node.expr)
        if value.type == ast.Type.STRING:
            text = value.value.replace("\\n", "\n")
        else:
            text = str(value)
        self.stdout.write(text)

    # --- expressions ---
    def _eval(self, node: ast.Expr) -> RuntimeValue:
        if isinstance(node, ast.IntLiteral):
            return RuntimeValue(ast.Type.INT, node.value)
        if isinstance(node, ast.StringLiteral):
            return RuntimeValue(ast.Type.STRING, node.value)
        if isinstance(node, ast.BoolLiteral):
            return RuntimeValue(ast.Type.BOOL, node.value)
        if isinstance(node, ast.VarRef):
            return self.store.get(node.name)
        if isinstance(node, ast.UnaryExpr):
            if node.op != ast.Operator.NOT:
                raise InternalError(f"unhandled unary op {node.op}", node.token)
            return RuntimeValue(ast.Type.BOOL, not self._eval_as(node.operand, bool))
        if isinstance(node, ast.BinaryExpr):
            return self._eval_binary(node)
        raise InternalError(f"unhandled expression {node}")

    def _eval_binary(self, node: ast.BinaryExpr) -> RuntimeValue:
        # Operator changes nest on the left (`1 - 1 + 1 - ...`), so walk
        # that spine iteratively and fold bottom-up.
        spine = [node]
        while isinstance(spine[-1].operands[0], ast.BinaryExpr):
            spine.append(spine[-1].operands[0])
        result = self._eval(spine[-1].operands[0])
        for current in reversed(spine):
            for operand in current.operands[1:]:
                result = self._apply(current, result, self._eval(operand))
            if result.type != current.type:
                raise InternalError(
                    f"{current.op} produced {result.type}, expected {current.type}",
                    current.token,
                )
        return result

    def _eval_as(self, node: ast.Expr, py_type: type) -> PyValue:
        value = self._eval(node).value
        if type(value) is not py_type:
            raise InternalError(
                f"expected {py_type.__name__}, got {value!r}", node.token
            )
        return value

    def _apply(
        self, node: ast.BinaryExpr, left: RuntimeValue, right: RuntimeValue
    ) -> RuntimeValue:
        op = node.op
        if left.type != right.type:
            raise InternalError(
                f"{op} applied to {left.type} and {right.type}", node.token
            )
        a, b = left.value, right.value
        if op == ast.Operator.ADD:
            return RuntimeValue(left.type, a + b)
        if op == ast.Operator.SUB:
            return RuntimeValue(ast.Type.INT, a - b)
        if op == ast.Operator.MUL:
            return RuntimeValue(ast.Type.INT, a * b)
        if op == ast.Operator.DIV:
            try:
                return RuntimeValue(ast.Type.INT, _truncating_div(a, b))
            except ZeroDivisionError:
                raise EvaluationError(
                    f"At {node.token.pos}: division by zero.", node.token
                ) from None
        if op == ast.Operator.LESS:
            return RuntimeValue(ast.Type.BOOL, a < b)
        if op == ast.Operator.EQUAL:
            return RuntimeValue(ast.Type.BOOL, a == b)
        if op == ast.Operator.AND:
            return RuntimeValue(ast.Type.BOOL, a and b)
        raise InternalError(f"unhandled binary op {op}", node.token)


def _truncating_div(a: int, b: int) -> int:
    # Python's // floors; the language truncates toward zero.
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


__all__ = [
    "Evaluator",
    "EvaluationError",
    "AssertionFailure",
    "RuntimeValue",
    "VariableStore",
]
