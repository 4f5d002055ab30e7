import io
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.append(str(SRC))

from minipl.errors import Stage  # noqa: E402
from minipl import pipeline  # noqa: E402
from minipl.pipeline import analyze_source, run_source  # noqa: E402


SAMPLES = ROOT / "samples"

GOOD_SAMPLES = [
    ("hello.mpl", "", "Hello, world!\n"),
    ("arithmetic.mpl", "", "16\n3\n"),
    ("loops.mpl", "", "12345\n54321\n"),
    ("factorial.mpl", "5\n", "The result is: 120\n"),
    (
        "echo.mpl",
        "3\n",
        "How many times?"
        "0 : Hello, World!\n1 : Hello, World!\n2 : Hello, World!\n",
    ),
    ("logic.mpl", "", "True\nFalse\n"),
]

NEGATIVE_SAMPLES = [
    ("mixed_types.mpl", Stage.SEMANTIC),
    ("uninitialized.mpl", Stage.SEMANTIC),
    ("failing_assert.mpl", Stage.ASSERTION),
]


def read_sample(filename: str) -> str:
    return (SAMPLES / filename).read_text(encoding="utf-8")


@pytest.mark.parametrize("filename,stdin,expected", GOOD_SAMPLES)
def test_samples_run(filename: str, stdin: str, expected: str):
    out = io.StringIO()
    result = run_source(read_sample(filename), stdin=io.StringIO(stdin), stdout=out)
    assert result.ok, result.error
    assert result.exit_code == 0
    assert out.getvalue() == expected


@pytest.mark.parametrize("filename,stdin,expected", GOOD_SAMPLES)
def test_samples_statement_count(filename: str, stdin: str, expected: str):
    source = read_sample(filename)
    program = analyze_source(source)
    top_level = [line for line in source.splitlines() if line and not line[0].isspace()]
    # one statement per unindented line; "end for;" closes a loop already counted
    assert len(program.statements) == len(top_level) - source.count("end for;")


@pytest.mark.parametrize("filename,stage", NEGATIVE_SAMPLES)
def test_negative_samples_fail_at_stage(filename: str, stage: Stage):
    out = io.StringIO()
    result = run_source(read_sample(filename), stdout=out)
    assert not result.ok
    assert result.stage == stage
    if stage == Stage.SEMANTIC:
        assert out.getvalue() == ""


def test_stages_stop_at_first_failure():
    out = io.StringIO()
    result = run_source('print "never"; var x : int := "s";', stdout=out)
    assert result.stage == Stage.SEMANTIC
    assert result.exit_code == 5
    assert out.getvalue() == ""


def test_each_stage_has_its_own_exit_code():
    codes = {
        run_source("print 1 $ 2;").exit_code,
        run_source("print 1").exit_code,
        run_source("print x;").exit_code,
        run_source("var n : int; read n;", stdin=io.StringIO("")).exit_code,
        run_source("assert (false);").exit_code,
    }
    assert codes == {3, 4, 5, 6, 7}


def test_deep_nesting_is_reported_as_parse_error():
    for source in [
        "print " + "(" * 100 + "1" + ")" * 100 + ";",
        "print " + "!" * 600 + "true;",
    ]:
        result = run_source(source, stdout=io.StringIO())
        assert result.stage == Stage.PARSING
        assert result.exit_code == 4


def test_nesting_at_limit_runs():
    out = io.StringIO()
    result = run_source("print " + "(" * 48 + "7" + ")" * 48 + ";", stdout=out)
    assert result.ok
    assert out.getvalue() == "7"


def test_recursion_limit_becomes_internal_error(monkeypatch):
    def exhaust(self, tree):
        raise RecursionError("maximum recursion depth exceeded")

    monkeypatch.setattr(pipeline.Analyzer, "analyze", exhaust)
    result = run_source("print 1;", stdout=io.StringIO())
    assert result.stage == Stage.INTERNAL
    assert result.exit_code == 70
