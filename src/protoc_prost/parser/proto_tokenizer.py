"""Tokenizer for protobuf (.proto) files."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Union

from .errors import ProtoParseError


class ProtoTokenType(Enum):
    SYMBOL = auto()
    NUMBER = auto()
    WORD = auto()

    # Special
    END = auto()


SYMBOLS = frozenset("{}=;\"")

_WHITESPACE = frozenset(" \t\n\r\f")


@dataclass
class ProtoToken:
    """A token is a view into the source text, not a copy of it."""

    type: ProtoTokenType
    start: int
    end: int
    line: int
    col: int
    source: str = field(repr=False, compare=False, default="")

    @property
    def value(self) -> str:
        return self.source[self.start:self.end]


def tokenize_proto(text: Union[str, bytes]) -> List[ProtoToken]:
    """Tokenize a protobuf source string into a list of tokens ending in END."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtoParseError(f"Source is not valid UTF-8: {e}", offset=e.start) from e

    tokens: List[ProtoToken] = []
    i = 0
    line = 1
    line_start = 0
    n = len(text)

    while i < n:
        ch = text[i]

        # Whitespace
        if ch in _WHITESPACE:
            if ch == "\n":
                line += 1
                line_start = i + 1
            i += 1
            continue

        # Comments
        if ch == "/":
            nxt = text[i + 1] if i + 1 < n else ""
            if nxt == "/":
                end = text.find("\n", i + 2)
                i = n if end < 0 else end
                continue
            if nxt == "*":
                end = text.find("*/", i + 2)
                if end < 0:
                    raise ProtoParseError(
                        "Unterminated block comment", line, i - line_start + 1, i
                    )
                for pos in range(i, end):
                    if text[pos] == "\n":
                        line += 1
                        line_start = pos + 1
                i = end + 2
                continue
            raise ProtoParseError(
                f"Expected comment after '/', got {nxt!r}", line, i - line_start + 1, i
            )

        start = i
        if ch in SYMBOLS:
            kind = ProtoTokenType.SYMBOL
            i += 1
        elif "0" <= ch <= "9":
            kind = ProtoTokenType.NUMBER
            while i < n and "0" <= text[i] <= "9":
                i += 1
        else:
            kind = ProtoTokenType.WORD
            while i < n and text[i] not in SYMBOLS and text[i] not in _WHITESPACE:
                i += 1

        tokens.append(ProtoToken(kind, start, i, line, start - line_start + 1, text))

    tokens.append(ProtoToken(ProtoTokenType.END, n, n, line, n - line_start + 1, text))
    return tokens


class ProtoTokenStream:
    """Tokens plus a read cursor that only moves forward."""

    def __init__(self, tokens: List[ProtoToken]):
        if not tokens or tokens[-1].type != ProtoTokenType.END:
            raise ValueError("token list must end with an END token")
        self._tokens = tokens
        self._pos = 0

    @classmethod
    def from_text(cls, text: Union[str, bytes]) -> ProtoTokenStream:
        return cls(tokenize_proto(text))

    @property
    def position(self) -> int:
        return self._pos

    def peek(self) -> ProtoToken:
        return self._tokens[self._pos]

    def next(self) -> ProtoToken:
        tok = self._tokens[self._pos]
        if tok.type == ProtoTokenType.END:
            raise ProtoParseError(
                "Unexpected end of input", tok.line, tok.col, tok.start
            )
        self._pos += 1
        return tok

    def at_end(self) -> bool:
        return self._tokens[self._pos].type == ProtoTokenType.END
