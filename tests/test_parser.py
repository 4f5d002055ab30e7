import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.append(str(SRC))

from minipl.lexer import Lexer, TokenKind
from minipl.parse_tree import Branch, Leaf, NonTerminal
from minipl.parser import Parser, ParseError


def log_feature(name: str):
    # Helps surface which language feature a test is exercising when run with -s
    print(f"[feature] {name}")


def parse(code: str) -> Branch:
    tokens = Lexer(code).scan()
    return Parser(tokens).parse()


def statements(tree: Branch):
    return tree.branches(NonTerminal.STATEMENT)


def test_program_keeps_semicolons():
    log_feature("program structure")
    tree = parse("var x : int; x := 1;")
    assert tree.kind == NonTerminal.PROGRAM
    assert len(tree.children) == 4
    assert isinstance(tree.children[1], Leaf)
    assert tree.children[1].token.kind == TokenKind.SEMICOLON
    assert len(statements(tree)) == 2


def test_declaration_child_counts():
    log_feature("declaration with and without initializer")
    tree = parse("var x : int; var s : string := \"hi\";")
    bare, with_init = statements(tree)
    assert len(bare.children) == 4
    assert len(with_init.children) == 6
    assert bare.children[3].kind == NonTerminal.TYPE


def test_expression_levels_nest_in_order():
    log_feature("precedence levels")
    tree = parse("print 1;")
    expr = statements(tree)[0].children[1]
    levels = []
    node = expr
    while isinstance(node, Branch):
        levels.append(node.kind)
        node = node.children[0]
    assert levels == [
        NonTerminal.EXPRESSION,
        NonTerminal.EXPRESSION_6,
        NonTerminal.EXPRESSION_5,
        NonTerminal.EXPRESSION_4,
        NonTerminal.EXPRESSION_3,
        NonTerminal.EXPRESSION_2,
        NonTerminal.EXPRESSION_1,
        NonTerminal.EXPRESSION_0,
    ]
    assert node.token.lexeme == "1"


def test_chained_operators_share_one_branch():
    log_feature("chained same-precedence operators")
    tree = parse("print a & b & c;")
    e6 = statements(tree)[0].children[1].children[0]
    assert e6.kind == NonTerminal.EXPRESSION_6
    # operand, &, operand, &, operand
    assert len(e6.children) == 5
    assert [c.token.lexeme for c in e6.children if isinstance(c, Leaf)] == ["&", "&"]


def test_unary_not_is_right_recursive():
    log_feature("unary not")
    tree = parse("print !!true;")
    e1 = statements(tree)[0].children[1].children[0]
    for _ in range(5):
        e1 = e1.children[0]
    assert e1.kind == NonTerminal.EXPRESSION_1
    assert len(e1.children) == 2
    inner = e1.children[1]
    assert inner.kind == NonTerminal.EXPRESSION_1
    assert len(inner.children) == 2


def test_parse_for_with_body():
    log_feature("for loop")
    tree = parse("var i : int;\nfor i in 1..3 do\n print i;\n print \"x\";\nend for;")
    loop = statements(tree)[1]
    assert loop.children[0].token.lexeme == "for"
    assert len(loop.branches(NonTerminal.STATEMENT)) == 2
    assert loop.children[-1].token.lexeme == "for"
    assert loop.children[-2].token.lexeme == "end"


def test_parse_read_print_assert():
    log_feature("read/print/assert")
    tree = parse("read x; print x; assert (x = 1);")
    read_stmt, print_stmt, assert_stmt = statements(tree)
    assert read_stmt.children[1].token.kind == TokenKind.IDENT
    assert print_stmt.children[1].kind == NonTerminal.EXPRESSION
    assert len(assert_stmt.children) == 4


def test_empty_for_body_is_an_error():
    log_feature("empty for body")
    with pytest.raises(ParseError):
        parse("var i : int; for i in 1..2 do end for;")


def test_missing_semicolon_reports_position():
    log_feature("missing semicolon")
    with pytest.raises(ParseError) as info:
        parse("var x : int\nx := 1;")
    assert info.value.token.lexeme == "x"
    assert "line 2, col 1" in str(info.value)


def test_unknown_type_error():
    log_feature("unknown type")
    with pytest.raises(ParseError, match='Unknown type "x"'):
        parse("var a : x;")


def test_empty_program_is_an_error():
    log_feature("empty program")
    with pytest.raises(ParseError):
        parse("")


def test_statement_cannot_start_with_operator():
    log_feature("bad statement start")
    with pytest.raises(ParseError, match="Expected start of statement"):
        parse("+ 1;")


def test_unclosed_paren():
    log_feature("unclosed parenthesis")
    with pytest.raises(ParseError):
        parse("print (1 + 2;")


def test_nesting_up_to_limit_parses():
    log_feature("deep parentheses")
    depth = 48
    parse("print " + "(" * depth + "1" + ")" * depth + ";")
    parse("print " + "!" * depth + "true;")


def test_nesting_past_limit_is_a_parse_error():
    with pytest.raises(ParseError, match="nested deeper than 48 levels"):
        parse("print " + "(" * 100 + "1" + ")" * 100 + ";")
    with pytest.raises(ParseError, match="nested deeper than 48 levels"):
        parse("print " + "!" * 600 + "true;")
