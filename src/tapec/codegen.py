"""
Lowering of variable-language statements to coalesced tape instructions.

Memory Layout:
- Named variables keep the cell the front end resolved them to
- Temporaries are taken above the highest named cell and recycled once freed

Code Generation Strategy:
- Set/print/input are a move plus one instruction
- Copy, += and -= use the drain-and-restore idiom: empty the source into the
  target(s) and a temporary, then pour the temporary back into the source
- while bodies end with a move back to the condition cell, so every loop
  leaves the pointer where it found it
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .errors import CompilerInvariantError
from .instructions import Add, Input, Node, Output, Set, Sub, Zero
from .nodes import (
    AddAssign,
    Copy,
    Print,
    ReadInput,
    SetConst,
    Statement,
    SubAssign,
    WhileNotZero,
    referenced_cells,
)
from .state import CompilerState


# ===== Pre-pass =====

def allocate_variables(program: Iterable[Statement], state: CompilerState) -> None:
    """
    Reserve the cells of named variables before any temporary is handed out.

    Assignment targets, input targets and loop conditions are marked in
    program order, loop bodies before whatever follows the loop. Operands that
    are only ever read are reserved afterwards so no temporary lands on them.
    """
    program = list(program)
    _mark_targets(program, state)
    _mark_operands(program, state)


def _mark_targets(program: Sequence[Statement], state: CompilerState) -> None:
    for stmt in program:
        if isinstance(stmt, (SetConst, ReadInput)):
            state.mark_used(stmt.cell)
        elif isinstance(stmt, WhileNotZero):
            state.mark_used(stmt.cell)
            _mark_targets(stmt.body, state)


def _mark_operands(program: Sequence[Statement], state: CompilerState) -> None:
    for stmt in program:
        for cell in referenced_cells(stmt):
            state.mark_used(cell)
        if isinstance(stmt, WhileNotZero):
            _mark_operands(stmt.body, state)


# ===== Helpers =====

def _move(out: List[Node], state: CompilerState, cell: int) -> None:
    move = state.move_to(cell)
    if move is not None:
        out.append(move)


def _require_used(state: CompilerState, *cells: int) -> None:
    for cell in cells:
        if not state.is_used(cell):
            raise CompilerInvariantError(f"cell {cell} was never reserved for a variable")


def _drain_and_restore(
    out: List[Node],
    state: CompilerState,
    src: int,
    target: int,
    target_op: Node,
    *,
    clear_target: bool = False,
) -> None:
    """
    target op= src without losing src.

    temp[-]
    (target[-] when copying)
    src[ target(op) temp+ src- ]
    temp[ src+ temp- ]
    """
    temp = state.allocate_temp()

    _move(out, state, temp)
    out.append(Zero())

    if clear_target:
        _move(out, state, target)
        out.append(Zero())

    _move(out, state, src)

    def _drain(st: CompilerState) -> List[Node]:
        body: List[Node] = []
        _move(body, st, target)
        body.append(target_op)
        _move(body, st, temp)
        body.append(Add(1))
        _move(body, st, src)
        body.append(Sub(1))
        return body

    out.append(state.with_loop(_drain))

    _move(out, state, temp)

    def _restore(st: CompilerState) -> List[Node]:
        body: List[Node] = []
        _move(body, st, src)
        body.append(Add(1))
        _move(body, st, temp)
        body.append(Sub(1))
        return body

    out.append(state.with_loop(_restore))

    state.free_temp(temp)


# ===== Statement lowering =====

def _require_distinct(dest: int, operand: int) -> None:
    # draining a cell into itself never empties it
    if dest == operand:
        raise ValueError(f"Operand cell {operand} is also the destination")


def _lower_set_const(stmt: SetConst, state: CompilerState, out: List[Node]) -> None:
    _require_used(state, stmt.cell)
    if not 0 <= stmt.value <= 255:
        raise ValueError(f"Constant out of range: {stmt.value}")
    _move(out, state, stmt.cell)
    out.append(Set(stmt.value))


def _lower_copy(stmt: Copy, state: CompilerState, out: List[Node]) -> None:
    _require_used(state, stmt.dest, stmt.src)
    _require_distinct(stmt.dest, stmt.src)
    _drain_and_restore(out, state, stmt.src, stmt.dest, Add(1), clear_target=True)


def _lower_add_assign(stmt: AddAssign, state: CompilerState, out: List[Node]) -> None:
    _require_used(state, stmt.dest, stmt.modifier)
    _require_distinct(stmt.dest, stmt.modifier)
    _drain_and_restore(out, state, stmt.modifier, stmt.dest, Add(1))


def _lower_sub_assign(stmt: SubAssign, state: CompilerState, out: List[Node]) -> None:
    _require_used(state, stmt.dest, stmt.modifier)
    _require_distinct(stmt.dest, stmt.modifier)
    _drain_and_restore(out, state, stmt.modifier, stmt.dest, Sub(1))


def _lower_while(stmt: WhileNotZero, state: CompilerState, out: List[Node]) -> None:
    _require_used(state, stmt.cell)
    _move(out, state, stmt.cell)

    def _body(st: CompilerState) -> List[Node]:
        inner = compile_statements(stmt.body, st)
        # re-test always reads the condition cell
        _move(inner, st, stmt.cell)
        return inner

    out.append(state.with_loop(_body))


def compile_statements(program: Iterable[Statement], state: CompilerState) -> List[Node]:
    out: List[Node] = []
    for stmt in program:
        state.add_trace(f"lower {stmt!r} at {state.data_ptr}")
        if isinstance(stmt, SetConst):
            _lower_set_const(stmt, state, out)
        elif isinstance(stmt, Copy):
            _lower_copy(stmt, state, out)
        elif isinstance(stmt, AddAssign):
            _lower_add_assign(stmt, state, out)
        elif isinstance(stmt, SubAssign):
            _lower_sub_assign(stmt, state, out)
        elif isinstance(stmt, Print):
            _require_used(state, stmt.cell)
            _move(out, state, stmt.cell)
            out.append(Output())
        elif isinstance(stmt, ReadInput):
            _require_used(state, stmt.cell)
            _move(out, state, stmt.cell)
            out.append(Input())
        elif isinstance(stmt, WhileNotZero):
            _lower_while(stmt, state, out)
        else:
            raise TypeError(f"Unknown statement: {stmt!r}")
    return out


def compile_program(program: Iterable[Statement], state: Optional[CompilerState] = None) -> List[Node]:
    """
    Compile a whole program with a fresh (or caller-provided, reset) state.

    Args:
        program: statements with resolved cell operands
        state: allocator to use; pass one with is_tracing set to collect a trace

    Returns:
        Coalesced instruction tree, starting with the pointer at cell 0
    """
    program = list(program)
    if state is None:
        state = CompilerState()
    else:
        state.reset()
    allocate_variables(program, state)
    return compile_statements(program, state)
