from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

from .errors import CompilerInvariantError
from .instructions import Loop, MoveLeft, MoveRight, Node


@dataclass
class CompilerState:
    """
    Cell allocator for one compilation.

    Tracks where the compiler believes the data pointer is (relative to the
    start of the program), which cells are taken, and which temporaries can be
    handed out again.
    """

    data_ptr: int = 0
    used: Set[int] = field(default_factory=set)
    free_temps: Set[int] = field(default_factory=set)
    smallest_unused: int = 0
    trace: List[str] = field(default_factory=list)
    is_tracing: bool = False

    def reset(self) -> None:
        self.data_ptr = 0
        self.used.clear()
        self.free_temps.clear()
        self.smallest_unused = 0
        self.trace.clear()

    def add_trace(self, message: str) -> None:
        if self.is_tracing:
            self.trace.append(message)

    # ===== Cell bookkeeping =====

    def mark_used(self, cell: int) -> None:
        if cell >= self.smallest_unused:
            self.smallest_unused = cell + 1
        self.used.add(cell)

    def is_used(self, cell: int) -> bool:
        return cell in self.used

    def allocate_temp(self) -> int:
        """
        Hand out a scratch cell.

        Freed temporaries are reused first (lowest index wins so output is
        stable); otherwise the next never-used cell is claimed.
        """
        if self.free_temps:
            cell = min(self.free_temps)
            self.free_temps.remove(cell)
            self.add_trace(f"reuse temp {cell}")
            return cell

        cell = self.smallest_unused
        if self.is_used(cell):
            raise CompilerInvariantError(f"temporary cell {cell} collides with a named variable")
        self.mark_used(cell)
        self.add_trace(f"alloc temp {cell}")
        return cell

    def free_temp(self, cell: int) -> None:
        if cell in self.free_temps:
            raise CompilerInvariantError(f"temporary cell {cell} freed twice")
        self.free_temps.add(cell)
        self.add_trace(f"free temp {cell}")

    # ===== Pointer movement =====

    def move_to(self, cell: int) -> Optional[Node]:
        """
        Move instruction from the tracked position to `cell`.

        Returns None when already there; callers drop it rather than emit an
        empty move.
        """
        diff = cell - self.data_ptr
        self.data_ptr = cell
        if diff > 0:
            return MoveRight(diff)
        if diff < 0:
            return MoveLeft(-diff)
        return None

    def with_loop(self, body_fn: Callable[["CompilerState"], List[Node]]) -> Loop:
        start = self.data_ptr
        self.add_trace(f"loop enter at {start}")
        body = body_fn(self)
        if self.data_ptr != start:
            raise CompilerInvariantError(
                f"loop body moved the pointer from {start} to {self.data_ptr}"
            )
        self.add_trace(f"loop exit at {start}")
        return Loop(body)
