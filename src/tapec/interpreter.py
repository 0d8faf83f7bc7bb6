from __future__ import annotations

from typing import BinaryIO, Iterable, List, Optional, Union

import numpy as np

from .instructions import (
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
)

TAPE_SIZE = 30000
LINE_FEED = 0x0A


class TapeInterpreter:
    """
    Runs a coalesced instruction tree directly over a wrapping byte tape.

    Input is line buffered: when the pending bytes run out a whole line is
    read from `input` and handed out one byte per Input, terminator included,
    followed by one extra line feed. Once the source is exhausted every
    further Input yields 0.
    Output is collected and written to `output` on flush(), which execute()
    calls before returning. Errors from either stream propagate untouched.
    """

    def __init__(self, output: BinaryIO, input: Optional[BinaryIO] = None, tape_size: int = TAPE_SIZE):
        if tape_size <= 0:
            raise ValueError(f"Tape size must be positive: {tape_size}")
        self.output = output
        self.input = input
        self.tape_size = tape_size
        self.reset()

    def reset(self) -> None:
        self.memory = np.zeros(self.tape_size, dtype=np.uint8)
        self.pointer = 0
        self.read_buf: List[int] = []
        self.write_buf = bytearray()
        self.eof = False

    # ===== I/O =====

    def _refill(self) -> None:
        line: Union[bytes, str] = b""
        if self.input is not None and not self.eof:
            line = self.input.readline()
        if not line:
            self.eof = True
            self.read_buf = [0]
            return
        if isinstance(line, str):
            line = line.encode("utf-8")
        # the line keeps its own terminator; one more line feed follows it
        self.read_buf = list(line) + [LINE_FEED]

    def read_byte(self) -> int:
        if not self.read_buf:
            self._refill()
        return self.read_buf.pop(0)

    def write_byte(self, value: int) -> None:
        self.write_buf.append(value)

    def flush(self) -> None:
        if self.write_buf:
            self.output.write(bytes(self.write_buf))
            self.write_buf.clear()
        flush = getattr(self.output, "flush", None)
        if flush is not None:
            flush()

    # ===== Execution =====

    def _run(self, program: Iterable[Node]) -> None:
        mem = self.memory
        # frames: [body, next index, is loop body]
        frames: List[list] = [[list(program), 0, False]]
        while frames:
            frame = frames[-1]
            body, i = frame[0], frame[1]
            if i == len(body):
                if frame[2] and mem[self.pointer] != 0:
                    frame[1] = 0
                else:
                    frames.pop()
                continue

            n = body[i]
            frame[1] = i + 1
            if isinstance(n, Add):
                mem[self.pointer] = (int(mem[self.pointer]) + n.count) % 256
            elif isinstance(n, Sub):
                mem[self.pointer] = (int(mem[self.pointer]) - n.count) % 256
            elif isinstance(n, MoveRight):
                self.pointer = (self.pointer + n.count) % self.tape_size
            elif isinstance(n, MoveLeft):
                self.pointer = (self.pointer - n.count) % self.tape_size
            elif isinstance(n, Loop):
                if mem[self.pointer] != 0:
                    frames.append([n.body, 0, True])
            elif isinstance(n, Zero):
                mem[self.pointer] = 0
            elif isinstance(n, Set):
                mem[self.pointer] = n.value
            elif isinstance(n, Output):
                self.write_byte(int(mem[self.pointer]))
            elif isinstance(n, Input):
                mem[self.pointer] = self.read_byte()
            else:
                raise TypeError(f"Unknown instruction: {n!r}")

    def execute(self, program: Iterable[Node]) -> None:
        self._run(program)
        self.flush()

    def dump(self, cells: int = 100, width: int = 8) -> str:
        """First `cells` tape values, `width` per row."""
        values = [int(b) for b in self.memory[:cells]]
        rows = [" ".join(map(str, values[i:i + width])) for i in range(0, len(values), width)]
        return "\n".join(rows)
