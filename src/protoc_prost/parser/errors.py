"""Error types raised while reading and translating .proto schemas."""

from __future__ import annotations

from typing import Optional


class ProtoSchemaError(Exception):
    """Base class for fatal problems in a schema file."""


class ProtoParseError(ProtoSchemaError):
    """Raised when the tokenizer or parser encounters unexpected input."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        col: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.line = line
        self.col = col
        self.offset = offset
        if line is not None:
            super().__init__(f"Line {line}:{col}: {message}")
        else:
            super().__init__(message)


class InvalidFieldError(ProtoSchemaError):
    """Raised for a field whose modifiers cannot be expressed on the wire."""

    def __init__(self, message_name: str, field_name: str, reason: str):
        self.message_name = message_name
        self.field_name = field_name
        super().__init__(f"{message_name}.{field_name}: {reason}")
