from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


def _build_context(lines: List[str], line_no_1: int, *, context: int = 2) -> str:
    idx = min(max(1, line_no_1), max(1, len(lines)))
    start = max(1, idx - context)
    end = min(len(lines), idx + context)

    out: List[str] = []
    for i in range(start, end + 1):
        prefix = '>' if i == idx else ' '
        out.append(f"{prefix} {i:4d} | {lines[i - 1]}")
    return "\n".join(out)


def _hint_for(message: str) -> Optional[str]:
    msg = message.lower()
    if 'semicolon' in msg:
        return 'Every statement except while ends with ";". Example: a = 3;'
    if "expected '!='" in msg or "expected '0'" in msg:
        return 'Loops only test against zero: while name != 0 { ... }'
    if "expected '}'" in msg:
        return 'Check for a missing closing "}" on a while body.'
    if 'number' in msg and '255' in msg:
        return 'Constants are single bytes. Use a value between 0 and 255.'
    if "'+=', '-=' or '='" in msg:
        return 'Statements are: x = 3; x = y; x += y; x -= y; print x; input x; while x != 0 { }'
    return None


class LoopImbalance(Enum):
    OPEN_WITHOUT_CLOSE = 'open-without-close'
    TOO_MANY_CLOSE = 'too-many-close'


@dataclass
class TapecError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class UnbalancedLoop(TapecError):
    kind: LoopImbalance
    position: int


@dataclass
class ParseError(TapecError):
    line: int
    context: str


@dataclass
class CompilerInvariantError(RuntimeError):
    """Raised when the allocator or code generator is internally inconsistent.

    Not a TapecError: nothing downstream of a broken cell layout can be trusted,
    so this is never handled alongside user errors.
    """

    message: str

    def __str__(self) -> str:
        return f"Compiler Error: {self.message}"


def make_unbalanced_loop(kind: LoopImbalance, position: int) -> UnbalancedLoop:
    if kind is LoopImbalance.OPEN_WITHOUT_CLOSE:
        text = f"Unmatched '[' at primitive {position}"
    else:
        text = f"Unmatched ']' at primitive {position}"
    return UnbalancedLoop(message=f"UnbalancedLoop: {text}", kind=kind, position=position)


def make_parse_error(*, message: str, source: str, line: int) -> ParseError:
    lines = source.split('\n')
    ctx = _build_context(lines, line)
    hint = _hint_for(message)
    hint_block = f"\nHint: {hint}" if hint else ""
    return ParseError(
        message=f"ParseError: {message} (line {line})\n{ctx}{hint_block}",
        line=line,
        context=ctx,
    )
