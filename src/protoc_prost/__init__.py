"""Compile .proto schemas into Rust types annotated for prost."""

from protoc_prost.compiler import ProtoIOError, compile_protos, compile_to_buffers, write_outputs
from protoc_prost.generator.rust_prost_generator import generate_rust
from protoc_prost.parser.errors import InvalidFieldError, ProtoParseError, ProtoSchemaError
from protoc_prost.parser.proto_ast_parser import parse_proto

__all__ = [
    "InvalidFieldError",
    "ProtoIOError",
    "ProtoParseError",
    "ProtoSchemaError",
    "compile_protos",
    "compile_to_buffers",
    "generate_rust",
    "parse_proto",
    "write_outputs",
]
