import sys
from pathlib import Path

import pytest

# Make src importable
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.append(str(SRC))

from minipl.lexer import Lexer, LexerError, TokenKind  # noqa: E402


def kinds(code: str):
    return [t.kind for t in Lexer(code).scan()]


def test_declaration_with_init():
    tokens = kinds("var x : int := 3;")
    assert tokens == [
        TokenKind.KEYWORD,  # var
        TokenKind.IDENT,  # x
        TokenKind.COLON,
        TokenKind.KEYWORD,  # int
        TokenKind.ASSIGN,
        TokenKind.NUMBER,
        TokenKind.SEMICOLON,
        TokenKind.EOF,
    ]


def test_for_header_with_range():
    tokens = kinds("for i in 1..n do")
    assert tokens == [
        TokenKind.KEYWORD,  # for
        TokenKind.IDENT,  # i
        TokenKind.KEYWORD,  # in
        TokenKind.NUMBER,
        TokenKind.RANGE,
        TokenKind.IDENT,  # n
        TokenKind.KEYWORD,  # do
        TokenKind.EOF,
    ]


def test_operators():
    tokens = Lexer("a + b - c * d / e < f = g & !h").scan()
    ops = [t for t in tokens if t.kind == TokenKind.BINARY_OP]
    assert [t.lexeme for t in ops] == ["+", "-", "*", "/", "<", "=", "&"]
    assert [t.kind for t in tokens if t.lexeme == "!"] == [TokenKind.UNARY_OP]


def test_bool_literals_are_not_identifiers():
    tokens = Lexer("true false truth").scan()
    assert [t.kind for t in tokens] == [
        TokenKind.BOOL,
        TokenKind.BOOL,
        TokenKind.IDENT,
        TokenKind.EOF,
    ]


def test_keywords_are_classified():
    tokens = Lexer("var for end in do read print int string bool assert").scan()
    assert all(t.kind == TokenKind.KEYWORD for t in tokens[:-1])


def test_string_keeps_raw_content():
    tokens = Lexer('print "a\\nb";').scan()
    assert tokens[1].kind == TokenKind.STRING
    assert tokens[1].lexeme == "a\\nb"


def test_positions_are_one_based():
    tokens = Lexer("var x : int;\n  x := 1;").scan()
    assert (tokens[0].line, tokens[0].col) == (1, 1)
    assert (tokens[1].line, tokens[1].col) == (1, 5)
    assign_target = tokens[5]
    assert assign_target.lexeme == "x"
    assert (assign_target.line, assign_target.col) == (2, 3)
    assert tokens[6].kind == TokenKind.ASSIGN
    assert (tokens[6].line, tokens[6].col) == (2, 5)


def test_unterminated_string_raises():
    with pytest.raises(LexerError):
        Lexer('print "oops').scan()


def test_unknown_tokens_are_all_reported():
    with pytest.raises(LexerError) as info:
        Lexer("var x : int := 1 $ 2;\nprint x ? 3;").scan()
    message = str(info.value)
    assert 'Unknown token "$" at line 1, col 18.' in message
    assert 'Unknown token "?" at line 2, col 9.' in message


def test_single_dot_is_unknown():
    with pytest.raises(LexerError):
        Lexer("for i in 1.3 do").scan()


def test_empty_source_is_just_eof():
    assert kinds("") == [TokenKind.EOF]


def test_identifier_may_continue_with_underscore():
    tokens = Lexer("var loop_count2 : int;").scan()
    assert tokens[1].kind == TokenKind.IDENT
    assert tokens[1].lexeme == "loop_count2"


def test_identifier_cannot_start_with_underscore():
    with pytest.raises(LexerError, match='Unknown token "_"'):
        Lexer("var _x : int;").scan()
