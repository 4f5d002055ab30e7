from .errors import InterpreterError, InternalError, Stage
from .lexer import Lexer, Token, TokenKind, LexerError
from .parser import Parser, ParseError
from .semantic import Analyzer, SemanticError
from .evaluator import Evaluator, EvaluationError, AssertionFailure
from .pipeline import RunResult, run_source

__all__ = [
    "InterpreterError",
    "InternalError",
    "Stage",
    "Lexer",
    "Token",
    "TokenKind",
    "LexerError",
    "Parser",
    "ParseError",
    "Analyzer",
    "SemanticError",
    "Evaluator",
    "EvaluationError",
    "AssertionFailure",
    "RunResult",
    "run_source",
]
