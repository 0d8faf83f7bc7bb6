#!/usr/bin/env python3
"""
Test actual execution of compiled variable-language programs.
"""

from tapec import CompileOptions, compile_file, compile_string, desugar, resugar, run_raw, run_string
from tapec.instructions import Loop, MoveLeft, MoveRight

COUNT_DOWN = """
a = 4;
one = 1;
while a != 0 {
    a -= one;
}
print a;
"""

COUNT_UP = """
a = 4;
one = 1;
res = 0;
while a != 0 {
    a -= one;
    res += one;
}
print res;
"""


def test_constant():
    assert run_string("a = 3; print a;") == bytes([3])


def test_add():
    assert run_string("a = 3; b = 4; a += b; print a;") == bytes([7])


def test_sub_to_zero():
    assert run_string(COUNT_DOWN) == bytes([0])


def test_count_up():
    assert run_string(COUNT_UP) == bytes([4])


def test_add_wraps():
    assert run_string("a = 200; b = 100; a += b; print a; print b;") == bytes([44, 100])


def test_sub_wraps():
    assert run_string("a = 1; b = 3; a -= b; print a;") == bytes([254])


def test_copy_leaves_source():
    assert run_string("a = 5; b = 9; b = a; print b; print a;") == bytes([5, 5])


def test_input_echo():
    source = "input c; while c != 0 { print c; input c; }"
    assert run_string(source, b"hey\n") == b"hey\n\n"


def test_multiply_by_repeated_add():
    source = """
    a = 6; b = 7; one = 1; res = 0;
    while a != 0 {
        res += b;
        a -= one;
    }
    print res;
    """
    assert run_string(source) == bytes([42])


def test_compiled_program_round_trips_as_text():
    result = compile_string(COUNT_UP)
    text = result.bf_code
    assert set(text) <= set("+-<>[].,")
    assert run_raw(text) == bytes([4])
    assert resugar(desugar(text)) == text


def test_every_loop_is_balanced():
    def check(nodes):
        total = 0
        for n in nodes:
            if isinstance(n, MoveRight):
                total += n.count
            elif isinstance(n, MoveLeft):
                total -= n.count
            elif isinstance(n, Loop):
                assert check(n.body) == 0
        return total

    check(compile_string(COUNT_UP).program)


def test_compile_result_metadata():
    result = compile_string(COUNT_UP, options=CompileOptions(trace=True))
    assert result.variables == {"a": 0, "one": 1, "res": 2}
    assert result.cells_used == 4
    assert result.trace

    assert compile_string(COUNT_UP).trace == []


def test_compile_file(tmp_path):
    path = tmp_path / "prog.tl"
    path.write_text("a = 65; print a;", encoding="utf-8")
    result = compile_file(path)
    assert run_raw(result.bf_code) == b"A"
