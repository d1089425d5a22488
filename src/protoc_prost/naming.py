from __future__ import annotations

from typing import List

# https://doc.rust-lang.org/std/index.html#keywords
RUST_KEYWORDS = frozenset({
    "Self", "as", "async", "await", "break", "const", "continue", "crate", "dyn",
    "else", "enum", "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop",
    "match", "mod", "move", "mut", "pub", "ref", "return", "self", "static", "struct",
    "super", "trait", "true", "type", "union", "unsafe", "use", "where", "while",
})

RAW_IDENT_PREFIX = "r#"


def _is_upper(ch: str) -> bool:
    return "A" <= ch <= "Z"


def _is_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def split_words(name: str) -> List[str]:
    """Split an identifier into words regardless of its original casing.

    Underscores separate words and are dropped. Digits always extend the
    current word. An uppercase run keeps absorbing uppercase letters, a
    lowercase run keeps absorbing lowercase letters, and an uppercase letter
    followed by a lowercase one always begins a new word:

        "c2CReadReport" -> ["c2", "C", "Read", "Report"]
        "ABCWord"       -> ["ABC", "Word"]
    """
    words: List[str] = []
    n = len(name)
    i = 0
    while i < n:
        if name[i] == "_":
            i += 1
            continue

        start = i
        upper_run = _is_upper(name[i])
        i += 1
        while i < n:
            ch = name[i]
            if ch == "_":
                break
            ch_upper = _is_upper(ch)
            ch_digit = _is_digit(ch)
            if ch_upper and i + 1 < n and _is_lower(name[i + 1]):
                break
            if not (ch_digit or upper_run or not ch_upper):
                break
            if not ch_digit:
                upper_run = ch_upper
            i += 1
        words.append(name[start:i])
    return words


def _escape(words: List[str], rendered: str) -> str:
    if len(words) == 1 and words[0] in RUST_KEYWORDS:
        return RAW_IDENT_PREFIX + rendered
    return rendered


def to_upper_camel(name: str) -> str:
    """Render an identifier as UpperCamelCase: order_id -> OrderId."""
    words = split_words(name)
    rendered = "".join(w[0].upper() + w[1:].lower() for w in words)
    return _escape(words, rendered)


def to_snake(name: str) -> str:
    """Render an identifier as snake_case: OrderId -> order_id."""
    words = split_words(name)
    rendered = "_".join(w.lower() for w in words)
    return _escape(words, rendered)
