from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Tuple, Union

# Raw primitive characters
INC = '+'
DEC = '-'
RIGHT = '>'
LEFT = '<'
LOOP_START = '['
LOOP_END = ']'
READ = ','
WRITE = '.'

PRIMITIVES = frozenset(INC + DEC + RIGHT + LEFT + LOOP_START + LOOP_END + READ + WRITE)


# ---------------- Coalesced IR nodes ----------------
@dataclass(frozen=True)
class Add:
    count: int  # run of '+'


@dataclass(frozen=True)
class Sub:
    count: int  # run of '-'


@dataclass(frozen=True)
class MoveLeft:
    count: int  # run of '<'


@dataclass(frozen=True)
class MoveRight:
    count: int  # run of '>'


@dataclass(frozen=True)
class Loop:
    body: List["Node"]


@dataclass(frozen=True)
class Zero:
    pass  # emits "[-]"


@dataclass(frozen=True)
class Set:
    value: int  # 0..255


@dataclass(frozen=True)
class Input:
    pass


@dataclass(frozen=True)
class Output:
    pass


Node = Union[Add, Sub, MoveLeft, MoveRight, Loop, Zero, Set, Input, Output]

COUNTED = (Add, Sub, MoveLeft, MoveRight)


def set_cost(value: int) -> int:
    """Number of +/- primitives needed after the zeroing loop to reach `value`."""
    return value if value <= 128 else 256 - value


def _walk(nodes: Iterable[Node]) -> Iterator[Tuple[Node, int]]:
    """Every node of the tree with its loop depth, without recursing."""
    stack: List[Tuple[Iterator[Node], int]] = [(iter(nodes), 0)]
    while stack:
        it, depth = stack[-1]
        n = next(it, None)
        if n is None:
            stack.pop()
            continue
        yield n, depth
        if isinstance(n, Loop):
            stack.append((iter(n.body), depth + 1))


def count_primitives(nodes: Iterable[Node]) -> int:
    """Static count of raw primitives the tree expands to."""
    c = 0
    for n, _ in _walk(nodes):
        if isinstance(n, COUNTED):
            c += n.count
        elif isinstance(n, (Input, Output)):
            c += 1
        elif isinstance(n, Zero):
            c += 3
        elif isinstance(n, Set):
            c += 3 + set_cost(n.value)
        elif isinstance(n, Loop):
            c += 2
    return c


def loop_depth(nodes: Iterable[Node]) -> int:
    depth = 0
    for n, d in _walk(nodes):
        if isinstance(n, Loop):
            depth = max(depth, d + 1)
    return depth
