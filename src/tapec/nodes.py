from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Union


# Statements of the variable language. Every operand is an already
# resolved cell index.

@dataclass(frozen=True)
class SetConst:
    cell: int
    value: int


@dataclass(frozen=True)
class Copy:
    dest: int
    src: int


@dataclass(frozen=True)
class AddAssign:
    dest: int
    modifier: int


@dataclass(frozen=True)
class SubAssign:
    dest: int
    modifier: int


@dataclass(frozen=True)
class Print:
    cell: int


@dataclass(frozen=True)
class ReadInput:
    cell: int


@dataclass(frozen=True)
class WhileNotZero:
    cell: int
    body: List["Statement"] = field(default_factory=list)


Statement = Union[SetConst, Copy, AddAssign, SubAssign, Print, ReadInput, WhileNotZero]


def referenced_cells(stmt: Statement) -> Iterator[int]:
    """Cells a statement reads or writes directly, in operand order."""
    if isinstance(stmt, (SetConst, Print, ReadInput, WhileNotZero)):
        yield stmt.cell
    elif isinstance(stmt, Copy):
        yield stmt.dest
        yield stmt.src
    elif isinstance(stmt, (AddAssign, SubAssign)):
        yield stmt.dest
        yield stmt.modifier
