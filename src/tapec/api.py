from __future__ import annotations

import io

from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional

from .codec import desugar, resugar
from .codegen import compile_program
from .instructions import Node
from .interpreter import TAPE_SIZE, TapeInterpreter
from .parser import parse_program
from .state import CompilerState


@dataclass(frozen=True)
class CompileOptions:
    trace: bool = False


@dataclass(frozen=True)
class CompileResult:
    program: List[Node]
    variables: Dict[str, int]
    cells_used: int
    trace: List[str] = field(default_factory=list)

    @property
    def bf_code(self) -> str:
        return resugar(self.program)


def compile_string(source: str, *, options: Optional[CompileOptions] = None) -> CompileResult:
    trace = False if options is None else options.trace
    parsed = parse_program(source)
    state = CompilerState(is_tracing=trace)
    program = compile_program(parsed.statements, state)
    return CompileResult(
        program=program,
        variables=parsed.variables,
        cells_used=state.smallest_unused,
        trace=list(state.trace),
    )


def compile_file(path: str | Path, *, options: Optional[CompileOptions] = None, encoding: str = "utf-8") -> CompileResult:
    p = Path(path)
    return compile_string(p.read_text(encoding=encoding), options=options)


def _execute(program: List[Node], input_data: bytes | BinaryIO, tape_size: int) -> bytes:
    if isinstance(input_data, (bytes, bytearray)):
        input_data = io.BytesIO(bytes(input_data))
    out = io.BytesIO()
    TapeInterpreter(out, input_data, tape_size=tape_size).execute(program)
    return out.getvalue()


def run_string(source: str, input_data: bytes | BinaryIO = b"", *, tape_size: int = TAPE_SIZE) -> bytes:
    """Compile variable-language source and run it, returning the output bytes."""
    return _execute(compile_string(source).program, input_data, tape_size)


def run_raw(code: str, input_data: bytes | BinaryIO = b"", *, tape_size: int = TAPE_SIZE) -> bytes:
    """Run raw primitive text, returning the output bytes. Raises UnbalancedLoop."""
    return _execute(desugar(code), input_data, tape_size)
