"""Translate a parsed .proto package into Rust types annotated for prost.

The #[prost(...)] attributes emitted here are the compatibility boundary
with the prost runtime: kind, presence, repetition, packing and wire tag
must match what prost-build would produce for the same schema.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from protoc_prost.naming import to_snake, to_upper_camel
from protoc_prost.parser.errors import InvalidFieldError
from protoc_prost.parser.proto_ast import (
    ProtoEnum,
    ProtoField,
    ProtoMessage,
    ProtoOneof,
    ProtoOneofField,
    ProtoPackage,
)

# Proto scalar type -> Rust type
PRIMITIVE_TYPE_MAP: Dict[str, str] = {
    "bool": "bool",
    "float": "f32",
    "double": "f64",
    "int32": "i32",
    "sint32": "i32",
    "sfixed32": "i32",
    "int64": "i64",
    "sint64": "i64",
    "sfixed64": "i64",
    "uint32": "u32",
    "fixed32": "u32",
    "uint64": "u64",
    "fixed64": "u64",
    "string": "::prost::alloc::string::String",
    "bytes": "::prost::alloc::vec::Vec<u8>",
}

# Scalars that are length-delimited on the wire and never packed.
LENGTH_DELIMITED_SCALARS = frozenset({"string", "bytes"})

OPTION_TYPE = "::core::option::Option"
VEC_TYPE = "::prost::alloc::vec::Vec"

KIND_MESSAGE = "message"
KIND_ENUM = "enum"
KIND_SCALAR = "scalar"

# Depth at which top-level enums are registered, one above the first
# emitted level.
ROOT_DEPTH = -1


@dataclass(frozen=True)
class ScopeEntry:
    kind: str
    depth: int


class Scope:
    """Lexically scoped table of type names visible at one nesting level.

    A scope is never modified after construction: entering a nested message
    builds a new scope from the parent's entries plus the message's own
    nested types, so sibling messages never see each other's locals.
    """

    def __init__(self, entries: Optional[Dict[str, ScopeEntry]] = None):
        self._entries: Dict[str, ScopeEntry] = dict(entries or {})

    def extended(self, names: Iterable[Tuple[str, ScopeEntry]]) -> Scope:
        entries = dict(self._entries)
        entries.update(names)
        return Scope(entries)

    def lookup(self, name: str) -> Optional[ScopeEntry]:
        return self._entries.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _indent(text: str, levels: int) -> str:
    prefix = "    " * levels
    return "".join(
        prefix + line if line.strip() else line
        for line in text.splitlines(keepends=True)
    )


def _resolve_kind(type_name: str, scope: Scope) -> str:
    entry = scope.lookup(type_name)
    if entry is not None and entry.kind == KIND_ENUM:
        return KIND_ENUM
    if type_name in PRIMITIVE_TYPE_MAP:
        return KIND_SCALAR
    # Anything else is taken to be a message, including names that are not
    # declared anywhere; those only fail when the generated Rust is compiled.
    return KIND_MESSAGE


def _type_path(type_name: str, scope: Scope, depth: int, current_message: str) -> str:
    """Render a reference to a named type as seen from ``depth``.

    Names missing from the scope are assumed to live at the package root.
    """
    entry = scope.lookup(type_name)
    declared_depth = entry.depth if entry is not None else ROOT_DEPTH
    depth_diff = depth - declared_depth
    if depth_diff < 0:
        raise ValueError(
            f"type {type_name!r} declared at depth {declared_depth} "
            f"is not visible from depth {depth}"
        )

    if depth_diff == 0:
        prefix = f"{to_snake(current_message)}::"
    else:
        prefix = "super::" * (depth_diff - 1)
    return prefix + to_upper_camel(type_name)


def _kind_attr(type_name: str, kind: str, path: str) -> str:
    if kind == KIND_ENUM:
        return f'enumeration="{path}"'
    if kind == KIND_MESSAGE:
        return "message"
    if type_name == "bytes":
        return 'bytes="vec"'
    return type_name


def _build_field(
    field: ProtoField,
    message_name: str,
    scope: Scope,
    depth: int,
    syntax: str,
) -> Dict[str, str]:
    """Build the attribute/type descriptor for one message field."""
    kind = _resolve_kind(field.type_name, scope)

    # Optional is compatible with repeated only where a reader expecting a
    # single value can merge or take the last element: strings, bytes and
    # messages. Packed numeric data cannot be read back as a single value.
    if field.is_optional and field.is_repeated:
        if kind != KIND_MESSAGE and field.type_name not in LENGTH_DELIMITED_SCALARS:
            raise InvalidFieldError(
                message_name,
                field.field_name,
                f"'optional repeated' is not allowed for type {field.type_name!r}",
            )
    is_optional = field.is_optional or (kind == KIND_MESSAGE and not field.is_repeated)

    path = ""
    if kind != KIND_SCALAR:
        path = _type_path(field.type_name, scope, depth, message_name)

    attrs = [_kind_attr(field.type_name, kind, path)]
    if is_optional:
        attrs.append("optional")
    if field.is_repeated:
        attrs.append("repeated")
    # proto2 repeated scalars are unpacked by default, proto3 ones packed.
    if (
        syntax == "proto2"
        and field.is_repeated
        and kind == KIND_SCALAR
        and field.type_name not in LENGTH_DELIMITED_SCALARS
    ):
        attrs.append('packed="false"')
    attrs.append(f'tag="{field.tag}"')

    if kind == KIND_ENUM:
        rust_type = "i32"
    elif kind == KIND_MESSAGE:
        rust_type = path
    else:
        rust_type = PRIMITIVE_TYPE_MAP[field.type_name]
    if field.is_repeated:
        rust_type = f"{VEC_TYPE}<{rust_type}>"
    if is_optional:
        rust_type = f"{OPTION_TYPE}<{rust_type}>"

    return {
        "attrs": ", ".join(attrs),
        "name": to_snake(field.field_name),
        "rust_type": rust_type,
    }


def _build_oneof_field(oneof: ProtoOneof, message_name: str) -> Dict[str, str]:
    """Build the struct member that holds the oneof's current alternative."""
    oneof_type = f"{to_snake(message_name)}::{to_upper_camel(oneof.name)}"
    tags = ", ".join(f.tag for f in oneof.fields)
    return {
        "attrs": f'oneof="{oneof_type}", tags="{tags}"',
        "name": to_snake(oneof.name),
        "rust_type": f"{OPTION_TYPE}<{oneof_type}>",
    }


def _build_variant(
    field: ProtoOneofField,
    message_name: str,
    scope: Scope,
    depth: int,
) -> Dict[str, str]:
    kind = _resolve_kind(field.type_name, scope)
    path = ""
    if kind != KIND_SCALAR:
        path = _type_path(field.type_name, scope, depth, message_name)

    if kind == KIND_ENUM:
        rust_type = "i32"
    elif kind == KIND_MESSAGE:
        rust_type = path
    else:
        rust_type = PRIMITIVE_TYPE_MAP[field.type_name]

    return {
        "attrs": f'{_kind_attr(field.type_name, kind, path)}, tag="{field.tag}"',
        "name": to_upper_camel(field.field_name),
        "rust_type": rust_type,
    }


def _render_enum(env: Environment, enum: ProtoEnum) -> str:
    template = env.get_template("enum.rs.j2")
    values = [{"name": to_upper_camel(v.name), "tag": v.tag} for v in enum.values]
    return template.render(enum_name=to_upper_camel(enum.name), values=values)


def _render_oneof(
    env: Environment,
    oneof: ProtoOneof,
    message_name: str,
    scope: Scope,
    depth: int,
) -> str:
    template = env.get_template("oneof.rs.j2")
    variants = [_build_variant(f, message_name, scope, depth) for f in oneof.fields]
    return template.render(enum_name=to_upper_camel(oneof.name), variants=variants)


def _render_message(
    env: Environment,
    message: ProtoMessage,
    scope: Scope,
    depth: int,
    syntax: str,
) -> str:
    """Render a message struct and, if needed, the module of its nested types."""
    nested = [e for e in message.entries if not isinstance(e, ProtoField)]
    # Oneofs are reachable only through the struct member, never by name.
    scope = scope.extended(
        (e.name, ScopeEntry(KIND_ENUM if isinstance(e, ProtoEnum) else KIND_MESSAGE, depth))
        for e in nested
        if isinstance(e, (ProtoEnum, ProtoMessage))
    )

    fields: List[Dict[str, str]] = []
    for entry in message.entries:
        if isinstance(entry, ProtoField):
            fields.append(_build_field(entry, message.name, scope, depth, syntax))
        elif isinstance(entry, ProtoOneof):
            fields.append(_build_oneof_field(entry, message.name))

    text = env.get_template("message.rs.j2").render(
        struct_name=to_upper_camel(message.name),
        fields=fields,
    )
    if not nested:
        return text

    body: List[str] = []
    for entry in nested:
        if isinstance(entry, ProtoEnum):
            body.append(_render_enum(env, entry))
        elif isinstance(entry, ProtoMessage):
            body.append(_render_message(env, entry, scope, depth + 1, syntax))
        else:
            # The oneof enum lives inside the module, one level deeper.
            body.append(_render_oneof(env, entry, message.name, scope, depth + 1))

    return text + env.get_template("nested_module.rs.j2").render(
        message_name=message.name,
        module_name=to_snake(message.name),
        body=_indent("".join(body), 1).rstrip("\n"),
    )


def generate_rust(package: ProtoPackage) -> str:
    """Generate the Rust source for one parsed .proto package."""
    env = _get_template_env()

    # Only top-level enums are registered up front. Top-level messages are
    # resolved through the message fallback in _resolve_kind.
    scope = Scope().extended(
        (e.name, ScopeEntry(KIND_ENUM, ROOT_DEPTH))
        for e in package.entries
        if isinstance(e, ProtoEnum)
    )

    out: List[str] = []
    for entry in package.entries:
        if isinstance(entry, ProtoEnum):
            out.append(_render_enum(env, entry))
        else:
            out.append(_render_message(env, entry, scope, ROOT_DEPTH + 1, package.syntax))
    return "".join(out)
