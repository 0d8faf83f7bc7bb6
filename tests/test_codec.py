#!/usr/bin/env python3
"""
Tests for the coalescing codec: raw primitive text <-> coalesced tree.
"""

import io
import random

import pytest

from tapec import LoopImbalance, TapeInterpreter, UnbalancedLoop, desugar, resugar, run_raw
from tapec.codec import filter_primitives, set_primitives
from tapec.instructions import (
    Add,
    Input,
    Loop,
    MoveLeft,
    MoveRight,
    Output,
    Set,
    Sub,
    Zero,
    count_primitives,
    loop_depth,
)

HELLO = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


def test_runs_are_counted():
    assert desugar("+++>>--<.,") == [
        Add(3),
        MoveRight(2),
        Sub(2),
        MoveLeft(1),
        Output(),
        Input(),
    ]


def test_comments_are_ignored():
    assert filter_primitives("a+b+ hello, world.") == "++,."
    assert desugar("x+ +y") == [Add(2)]


def test_clear_loops_become_zero():
    assert desugar("[-]") == [Zero()]
    assert desugar("[+]") == [Zero()]
    assert desugar("+[-]") == [Add(1), Zero()]


def test_repeated_clear_is_dropped():
    assert desugar("[-][-]") == [Zero()]
    assert desugar("[-][+][-]") == [Zero()]
    assert desugar("[-]>[-]") == [Zero(), MoveRight(1), Zero()]


def test_other_loops_are_kept():
    assert desugar("[--]") == [Loop([Sub(2)])]
    assert desugar("[->+<]") == [Loop([Sub(1), MoveRight(1), Add(1), MoveLeft(1)])]
    assert desugar("[[-]>]") == [Loop([Zero(), MoveRight(1)])]
    assert desugar("[]") == [Loop([])]


def test_unterminated_loop():
    with pytest.raises(UnbalancedLoop) as exc:
        desugar("[")
    assert exc.value.kind is LoopImbalance.OPEN_WITHOUT_CLOSE
    assert exc.value.position == 0

    with pytest.raises(UnbalancedLoop) as exc:
        desugar("+[[-]")
    assert exc.value.kind is LoopImbalance.OPEN_WITHOUT_CLOSE
    assert exc.value.position == 1


def test_extra_close():
    with pytest.raises(UnbalancedLoop) as exc:
        desugar("]")
    assert exc.value.kind is LoopImbalance.TOO_MANY_CLOSE
    assert exc.value.position == 0

    with pytest.raises(UnbalancedLoop) as exc:
        desugar("[]]")
    assert exc.value.kind is LoopImbalance.TOO_MANY_CLOSE
    assert exc.value.position == 2


def test_resugar_expands_counts():
    assert resugar([Add(3), MoveRight(2), Sub(1), MoveLeft(4)]) == "+++>>-<<<<"
    assert resugar([Loop([Sub(1), MoveRight(1)]), Output(), Input()]) == "[->].,"
    assert resugar([Zero()]) == "[-]"


def test_set_picks_the_shorter_direction():
    assert resugar([Set(0)]) == "[-]"
    assert resugar([Set(5)]) == "[-]+++++"
    assert resugar([Set(128)]) == "[-]" + "+" * 128
    assert resugar([Set(129)]) == "[-]" + "-" * 127
    assert resugar([Set(255)]) == "[-]-"


def test_set_out_of_range():
    with pytest.raises(ValueError):
        set_primitives(256)


def test_set_reaches_every_byte():
    for value in range(256):
        text = resugar([Set(value)])
        steps = text.count("+") + text.count("-")
        assert steps == min(value, 256 - value) + 1
        assert count_primitives([Set(value)]) == len(text)

        interp = TapeInterpreter(io.BytesIO())
        interp.execute(desugar(text))
        assert int(interp.memory[0]) == value


def test_round_trip_preserves_output():
    programs = [
        (HELLO, b""),
        (",[.,]", b"hi\nthere\n"),
        ("+++++[>+++++++++++++<-]>.[-]+[-]++++++.", b""),
        ("-.>,[-]+++[-][+].<[->+<]>.", b"z\n"),
    ]
    for code, data in programs:
        again = resugar(desugar(code))
        assert run_raw(code, data) == run_raw(again, data)


def test_hello_world():
    assert run_raw(HELLO) == b"Hello World!\n"


def random_program(rng, depth=0):
    """Balanced program that always halts: each generated loop ends by clearing its cell."""
    parts = []
    for _ in range(rng.randint(1, 8)):
        roll = rng.random()
        if roll < 0.45:
            parts.append(rng.choice("+-<>") * rng.randint(1, 4))
        elif roll < 0.55:
            parts.append(",")
        elif roll < 0.65:
            parts.append(".")
        elif roll < 0.75:
            parts.append(rng.choice(["[-]", "[+]", "[-][-]", "[-][+]"]))
        elif roll < 0.8:
            parts.append(" note ")
        elif depth < 3:
            parts.append("[" + random_program(rng, depth + 1) + "[-]]")
        else:
            parts.append(".")
    return "".join(parts)


def random_input(rng):
    lines = []
    for _ in range(rng.randint(0, 3)):
        lines.append(bytes(rng.randint(1, 255) for _ in range(rng.randint(0, 5))))
    return b"\n".join(lines)


def test_random_round_trips():
    rng = random.Random(1234)
    for _ in range(200):
        code = random_program(rng)
        data = random_input(rng)
        again = resugar(desugar(code))
        assert run_raw(code, data, tape_size=8) == run_raw(again, data, tape_size=8), code


def test_deep_nesting():
    depth = 2000
    code = "+" + "[" * depth + "-" + "]" * depth + "."
    program = desugar(code)
    assert loop_depth(program) == depth - 1
    assert resugar(program) == "+" + "[" * (depth - 1) + "[-]" + "]" * (depth - 1) + "."
    assert count_primitives(program) == len(code)
    assert run_raw(code) == b"\x00"


def test_deep_unterminated_loop():
    with pytest.raises(UnbalancedLoop) as exc:
        desugar("+" + "[" * 3000 + "]" * 2999)
    assert exc.value.kind is LoopImbalance.OPEN_WITHOUT_CLOSE
    assert exc.value.position == 1
