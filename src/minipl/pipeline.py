"""Runs source text through every stage and reports the outcome as a value.

Each stage fails fast by raising its `InterpreterError` subclass; `run_source`
is the single place those are turned into a stage-tagged `RunResult`, so a
failure in one stage means no later stage runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, TextIO

from . import ast
from .errors import InternalError, InterpreterError, Stage
from .evaluator import Evaluator
from .lexer import Lexer, Token
from .parse_tree import Branch
from .parser import Parser
from .semantic import Analyzer

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    error: Optional[InterpreterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def stage(self) -> Optional[Stage]:
        return self.error.stage if self.error is not None else None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error is not None else 0


def tokenize(source: str) -> List[Token]:
    return Lexer(source).scan()


def parse_source(source: str) -> Branch:
    return Parser(tokenize(source)).parse()


def analyze_source(source: str) -> ast.Program:
    return Analyzer(source).analyze(parse_source(source))


def run_source(
    source: str, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None
) -> RunResult:
    try:
        logger.info("scanning")
        tokens = Lexer(source).scan()
        logger.info("parsing")
        tree = Parser(tokens).parse()
        logger.info("semantic checks")
        program = Analyzer(source).analyze(tree)
        logger.info("executing")
        Evaluator(stdin=stdin, stdout=stdout).evaluate(program)
    except InterpreterError as e:
        logger.debug("%s stage failed: %s", e.stage.value, e.message)
        return RunResult(error=e)
    except RecursionError:
        error = InternalError("program is nested too deeply to process")
        logger.debug("recursion limit hit")
        return RunResult(error=error)
    return RunResult()


__all__ = ["RunResult", "tokenize", "parse_source", "analyze_source", "run_source"]
