import re

from dataclasses import dataclass
from typing import List

_MULTI_CHAR_OPS = {"+=", "-=", "!="}
_SINGLE_CHAR_OPS = '{}=;'


@dataclass(frozen=True)
class Token:
    text: str
    line: int  # 1-based


def _strip_comments(code: str) -> str:
    code = re.sub(r'//.*', '', code)
    # keep the newlines of block comments so line numbers stay put
    return re.sub(r'/\*.*?\*/', lambda m: '\n' * m.group(0).count('\n'), code, flags=re.DOTALL)


def preprocess(code: str) -> str:
    return _strip_comments(code)


def tokenize(line: str):
    tokens = []
    i = 0
    while i < len(line):
        if line[i].isspace():
            i += 1
            continue

        if line[i:i + 2] in _MULTI_CHAR_OPS:
            tokens.append(line[i:i + 2])
            i += 2
        elif line[i] in _SINGLE_CHAR_OPS:
            tokens.append(line[i])
            i += 1
        elif line[i].isalnum() or line[i] == '_':
            j = i
            while j < len(line) and (line[j].isalnum() or line[j] == '_'):
                j += 1
            tokens.append(line[i:j])
            i = j
        else:
            # stray character; the parser reports it
            tokens.append(line[i])
            i += 1

    return tokens


def tokenize_source(code: str) -> List[Token]:
    """Comment-free token stream of a whole source, each token tagged with its line."""
    out: List[Token] = []
    for line_no_0, line in enumerate(preprocess(code).split('\n')):
        for text in tokenize(line):
            out.append(Token(text=text, line=line_no_0 + 1))
    return out
