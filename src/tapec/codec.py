"""
Coalescing codec: raw primitive text <-> coalesced instruction tree.

desugar() packs runs of + - < > into counted nodes, turns [-] / [+] into Zero
and validates bracket balance. resugar() is the inverse expansion. The round
trip preserves behaviour but not the exact text, since Zero and Set forget the
loop shape they came from.
"""
from __future__ import annotations

from typing import Iterable, Iterator, List

from .errors import LoopImbalance, make_unbalanced_loop
from .instructions import (
    DEC,
    INC,
    LEFT,
    LOOP_END,
    LOOP_START,
    PRIMITIVES,
    READ,
    RIGHT,
    WRITE,
    Add,
    Input,
    Loop,
    MoveLeft,
    MoveRight,
    Node,
    Output,
    Set,
    Sub,
    Zero,
    set_cost,
)

_RUNS = {
    INC: Add,
    DEC: Sub,
    LEFT: MoveLeft,
    RIGHT: MoveRight,
}

_ZERO_TEXT = LOOP_START + DEC + LOOP_END


def filter_primitives(source: str) -> str:
    """Drop every character that is not one of the eight primitives."""
    return "".join(ch for ch in source if ch in PRIMITIVES)


# ---------------- Desugar: raw -> tree ----------------
def desugar(code: str) -> List[Node]:
    """
    Parse raw primitive text into a coalesced tree.

    Non-primitive characters are ignored. Raises UnbalancedLoop when a '[' is
    never closed or a ']' has nothing to close; `position` indexes the
    filtered primitive stream.
    """
    code = filter_primitives(code)
    stack: List[List[Node]] = [[]]
    opens: List[int] = []

    i = 0
    while i < len(code):
        ch = code[i]
        kind = _RUNS.get(ch)
        if kind is not None:
            j = i + 1
            while j < len(code) and code[j] == ch:
                j += 1
            stack[-1].append(kind(j - i))
            i = j
            continue

        if ch == LOOP_START:
            opens.append(i)
            stack.append([])
        elif ch == LOOP_END:
            if not opens:
                raise make_unbalanced_loop(LoopImbalance.TOO_MANY_CLOSE, i)
            opens.pop()
            body = stack.pop()
            out = stack[-1]
            if body == [Sub(1)] or body == [Add(1)]:
                # [-] / [+]; a second clear in a row changes nothing
                if not (out and isinstance(out[-1], Zero)):
                    out.append(Zero())
            else:
                out.append(Loop(body))
        elif ch == READ:
            stack[-1].append(Input())
        elif ch == WRITE:
            stack[-1].append(Output())
        i += 1

    if opens:
        raise make_unbalanced_loop(LoopImbalance.OPEN_WITHOUT_CLOSE, opens[0])
    return stack[0]


# ---------------- Resugar: tree -> raw ----------------
def set_primitives(value: int) -> str:
    """Raw text that sets the current cell to `value` from any starting value."""
    if not 0 <= value <= 255:
        raise ValueError(f"Set value out of range: {value}")
    if value > 128:
        return _ZERO_TEXT + DEC * set_cost(value)
    return _ZERO_TEXT + INC * value


def _flat(n: Node) -> str:
    if isinstance(n, Add):
        return INC * n.count
    if isinstance(n, Sub):
        return DEC * n.count
    if isinstance(n, MoveLeft):
        return LEFT * n.count
    if isinstance(n, MoveRight):
        return RIGHT * n.count
    if isinstance(n, Zero):
        return _ZERO_TEXT
    if isinstance(n, Set):
        return set_primitives(n.value)
    if isinstance(n, Input):
        return READ
    if isinstance(n, Output):
        return WRITE
    raise TypeError(f"Unknown instruction: {n!r}")


def resugar(nodes: Iterable[Node]) -> str:
    out: List[str] = []
    # one iterator per open loop; ']' is written when its body runs out
    stack: List[Iterator[Node]] = [iter(nodes)]
    while stack:
        n = next(stack[-1], None)
        if n is None:
            stack.pop()
            if stack:
                out.append(LOOP_END)
        elif isinstance(n, Loop):
            out.append(LOOP_START)
            stack.append(iter(n.body))
        else:
            out.append(_flat(n))
    return "".join(out)
