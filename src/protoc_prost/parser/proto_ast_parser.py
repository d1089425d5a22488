"""Recursive descent parser for protobuf (.proto) files.

Consumes a token stream from proto_tokenizer and produces proto AST nodes.
Schemas are trusted build inputs, so the parser never tries to recover: the
first unexpected token raises ProtoParseError.
"""

from __future__ import annotations

from typing import List, Tuple, Union

from .errors import ProtoParseError
from .proto_ast import (
    ProtoEnum,
    ProtoEnumValue,
    ProtoField,
    ProtoMessage,
    ProtoOneof,
    ProtoOneofField,
    ProtoPackage,
)
from .proto_tokenizer import ProtoToken, ProtoTokenStream, ProtoTokenType, tokenize_proto


class ProtoParser:
    """Recursive descent parser for .proto files."""

    def __init__(self, tokens: Union[List[ProtoToken], ProtoTokenStream]):
        if isinstance(tokens, ProtoTokenStream):
            self._stream = tokens
        else:
            self._stream = ProtoTokenStream(tokens)

    # -- public API --

    def parse(self) -> ProtoPackage:
        """Parse: SYNTAX = STRING ; PACKAGE WORD ; { import | enum | message }"""
        self._expect_word("syntax")
        self._expect_symbol("=")
        syntax = self._parse_string()
        self._expect_symbol(";")
        self._expect_word("package")
        name_tok = self._expect(ProtoTokenType.WORD)
        self._expect_symbol(";")

        package = ProtoPackage(name=name_tok.value, syntax=syntax)
        while not self._stream.at_end():
            tok = self._stream.peek()
            if self._is_word(tok, "import"):
                self._stream.next()
                package.imports.append(self._parse_string())
                self._expect_symbol(";")
            elif self._is_word(tok, "enum"):
                package.entries.append(self._parse_enum())
            elif self._is_word(tok, "message"):
                package.entries.append(self._parse_message())
            else:
                raise self._unexpected("'import', 'enum' or 'message'", tok)

        return package

    # -- message parsing --

    def _parse_message(self) -> ProtoMessage:
        """Parse: MESSAGE WORD { body } [;]"""
        self._expect_word("message")
        name_tok = self._expect(ProtoTokenType.WORD)
        self._expect_symbol("{")

        message = ProtoMessage(name=name_tok.value)
        while True:
            tok = self._stream.peek()
            if self._is_symbol(tok, "}"):
                self._close_block()
                return message
            if self._is_word(tok, "message"):
                message.entries.append(self._parse_message())
            elif self._is_word(tok, "oneof"):
                message.entries.append(self._parse_oneof())
            elif self._is_word(tok, "enum"):
                message.entries.append(self._parse_enum())
            else:
                message.entries.append(self._parse_field())

    def _parse_field(self) -> ProtoField:
        """Parse: {OPTIONAL | REPEATED} WORD(type) WORD(name) = NUMBER ;"""
        is_optional = False
        is_repeated = False
        while True:
            tok = self._stream.peek()
            if self._is_word(tok, "optional"):
                is_optional = True
            elif self._is_word(tok, "repeated"):
                is_repeated = True
            else:
                break
            self._stream.next()

        type_name, field_name, tag = self._parse_typed_entry()
        return ProtoField(
            type_name=type_name,
            field_name=field_name,
            tag=tag,
            is_optional=is_optional,
            is_repeated=is_repeated,
        )

    def _parse_typed_entry(self) -> Tuple[str, str, str]:
        """Parse: WORD(type) WORD(name) = NUMBER ;"""
        type_tok = self._expect(ProtoTokenType.WORD)
        name_tok = self._expect(ProtoTokenType.WORD)
        self._expect_symbol("=")
        num_tok = self._expect(ProtoTokenType.NUMBER)
        self._expect_symbol(";")
        return type_tok.value, name_tok.value, num_tok.value

    # -- enum / oneof parsing --

    def _parse_enum(self) -> ProtoEnum:
        """Parse: ENUM WORD { {WORD = NUMBER ;} } [;]"""
        self._expect_word("enum")
        name_tok = self._expect(ProtoTokenType.WORD)
        self._expect_symbol("{")

        enum = ProtoEnum(name=name_tok.value)
        while not self._is_symbol(self._stream.peek(), "}"):
            value_tok = self._expect(ProtoTokenType.WORD)
            self._expect_symbol("=")
            num_tok = self._expect(ProtoTokenType.NUMBER)
            self._expect_symbol(";")
            enum.values.append(ProtoEnumValue(name=value_tok.value, tag=num_tok.value))
        self._close_block()
        return enum

    def _parse_oneof(self) -> ProtoOneof:
        """Parse: ONEOF WORD { {WORD WORD = NUMBER ;} } [;]"""
        self._expect_word("oneof")
        name_tok = self._expect(ProtoTokenType.WORD)
        self._expect_symbol("{")

        oneof = ProtoOneof(name=name_tok.value)
        while not self._is_symbol(self._stream.peek(), "}"):
            type_name, field_name, tag = self._parse_typed_entry()
            oneof.fields.append(
                ProtoOneofField(type_name=type_name, field_name=field_name, tag=tag)
            )
        self._close_block()
        return oneof

    # -- shared helpers --

    def _close_block(self) -> None:
        """Consume a closing brace and the optional semicolon after it."""
        self._expect_symbol("}")
        if self._is_symbol(self._stream.peek(), ";"):
            self._stream.next()

    def _parse_string(self) -> str:
        """Parse: " ... " and return the raw text between the quotes."""
        open_tok = self._expect_symbol('"')
        while not self._is_symbol(self._stream.peek(), '"'):
            self._stream.next()
        close_tok = self._stream.next()
        return open_tok.source[open_tok.end:close_tok.start]

    # -- token helpers --

    @staticmethod
    def _is_word(tok: ProtoToken, word: str) -> bool:
        return tok.type == ProtoTokenType.WORD and tok.value == word

    @staticmethod
    def _is_symbol(tok: ProtoToken, symbol: str) -> bool:
        return tok.type == ProtoTokenType.SYMBOL and tok.value == symbol

    def _expect(self, expected: ProtoTokenType) -> ProtoToken:
        tok = self._stream.peek()
        if tok.type != expected:
            raise self._unexpected(expected.name, tok)
        return self._stream.next()

    def _expect_word(self, word: str) -> ProtoToken:
        tok = self._stream.peek()
        if not self._is_word(tok, word):
            raise self._unexpected(repr(word), tok)
        return self._stream.next()

    def _expect_symbol(self, symbol: str) -> ProtoToken:
        tok = self._stream.peek()
        if not self._is_symbol(tok, symbol):
            raise self._unexpected(repr(symbol), tok)
        return self._stream.next()

    @staticmethod
    def _unexpected(expected: str, tok: ProtoToken) -> ProtoParseError:
        return ProtoParseError(
            f"Expected {expected}, got {tok.type.name} ({tok.value!r})",
            tok.line,
            tok.col,
            tok.start,
        )


def parse_proto(text: Union[str, bytes]) -> ProtoPackage:
    """Tokenize and parse one .proto source into a ProtoPackage."""
    return ProtoParser(tokenize_proto(text)).parse()
