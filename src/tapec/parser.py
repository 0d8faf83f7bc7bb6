from __future__ import annotations

import re

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import make_parse_error
from .lexer import Token, tokenize_source
from .nodes import (
    AddAssign,
    Copy,
    Print,
    ReadInput,
    SetConst,
    Statement,
    SubAssign,
    WhileNotZero,
)

_IDENT = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')
_NUMBER = re.compile(r'^[0-9]+$')
_KEYWORDS = {'print', 'input', 'while'}


class VariableAllocator:
    """Gives each distinct name the next free cell, in order of first appearance."""

    def __init__(self):
        self.vars: Dict[str, int] = {}
        self.max = 0

    def variable(self, name: str) -> int:
        if name not in self.vars:
            self.vars[name] = self.max
            self.max += 1
        return self.vars[name]


@dataclass
class ParsedProgram:
    statements: List[Statement]
    variables: Dict[str, int] = field(default_factory=dict)


class _Parser:
    def __init__(self, source: str, alloc: VariableAllocator):
        self.source = source
        self.tokens: List[Token] = tokenize_source(source)
        self.pos = 0
        self.alloc = alloc

    # ===== Token stream =====

    def _peek(self) -> Optional[Token]:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def _line(self) -> int:
        tok = self._peek()
        if tok is not None:
            return tok.line
        if self.tokens:
            return self.tokens[-1].line
        return 1

    def _error(self, message: str):
        return make_parse_error(message=message, source=self.source, line=self._line())

    def _accept(self, text: str) -> bool:
        tok = self._peek()
        if tok is not None and tok.text == text:
            self.pos += 1
            return True
        return False

    def _expect(self, text: str, message: str) -> None:
        if not self._accept(text):
            raise self._error(message)

    def _ident(self, message: str) -> str:
        tok = self._peek()
        if tok is None or not _IDENT.match(tok.text) or tok.text in _KEYWORDS:
            raise self._error(message)
        self.pos += 1
        return tok.text

    def _end_statement(self) -> None:
        self._expect(';', 'expected semicolon at the end of the statement')

    # ===== Statements =====

    def parse(self) -> List[Statement]:
        out: List[Statement] = []
        while self._peek() is not None:
            out.append(self._statement())
        return out

    def _statement(self) -> Statement:
        if self._accept('print'):
            name = self._ident("expected variable name after 'print'")
            self._end_statement()
            return Print(self.alloc.variable(name))

        if self._accept('input'):
            name = self._ident("expected variable name after 'input'")
            self._end_statement()
            return ReadInput(self.alloc.variable(name))

        if self._accept('while'):
            return self._while()

        dest_name = self._ident('expected variable name')
        dest = self.alloc.variable(dest_name)

        if self._accept('+='):
            modifier = self._operand(dest_name, "expected variable name after '+='")
            self._end_statement()
            return AddAssign(dest=dest, modifier=modifier)

        if self._accept('-='):
            modifier = self._operand(dest_name, "expected variable name after '-='")
            self._end_statement()
            return SubAssign(dest=dest, modifier=modifier)

        if self._accept('='):
            tok = self._peek()
            if tok is not None and _NUMBER.match(tok.text):
                value = int(tok.text)
                if value > 255:
                    raise self._error(f'expected number (in 0..255), got {value}')
                self.pos += 1
                self._end_statement()
                return SetConst(cell=dest, value=value)
            src = self._operand(dest_name, "expected number (in 0..255) or variable after '='")
            self._end_statement()
            return Copy(dest=dest, src=src)

        raise self._error(f"expected '+=', '-=' or '=' after '{dest_name}'")

    def _operand(self, dest_name: str, message: str) -> int:
        name = self._ident(message)
        if name == dest_name:
            raise self._error(f"'{name}' cannot be used on both sides of the same statement")
        return self.alloc.variable(name)

    def _while(self) -> WhileNotZero:
        name = self._ident("expected variable name after 'while'")
        self._expect('!=', f"expected '!=' after 'while {name}'")
        self._expect('0', f"expected '0' after 'while {name} !='")
        self._expect('{', f"expected '{{' after 'while {name} != 0'")

        body: List[Statement] = []
        while not self._accept('}'):
            if self._peek() is None:
                raise self._error("expected '}' to close the while body")
            body.append(self._statement())

        # condition cell is resolved after its body
        return WhileNotZero(cell=self.alloc.variable(name), body=body)


def parse_program(source: str, alloc: Optional[VariableAllocator] = None) -> ParsedProgram:
    """
    Parse variable-language source into statements with resolved cells.

    Raises ParseError with the offending line on malformed input.
    """
    if alloc is None:
        alloc = VariableAllocator()
    statements = _Parser(source, alloc).parse()
    return ParsedProgram(statements=statements, variables=dict(alloc.vars))
