"""Error types shared by every stage of the MiniPL pipeline."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .lexer import Token


class Stage(Enum):
    SCANNING = "scanning"
    PARSING = "parsing"
    SEMANTIC = "semantic analysis"
    EXECUTION = "execution"
    ASSERTION = "assertion"
    INTERNAL = "internal"


class InterpreterError(Exception):
    """Base for every failure the pipeline reports to the user.

    Subclasses pin the stage that raised them and the process exit code the
    CLI uses for it.
    """

    stage: Stage = Stage.INTERNAL
    exit_code: int = 70

    def __init__(self, message: str, token: Optional["Token"] = None):
        super().__init__(message)
        self.message = message
        self.token = token


class InternalError(InterpreterError):
    """A tree or value shape that earlier stages should have ruled out."""

    stage = Stage.INTERNAL
    exit_code = 70


__all__ = ["Stage", "InterpreterError", "InternalError"]
