"""AST node definitions for protobuf (.proto) files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union


@dataclass
class ProtoField:
    """A field declaration: [optional] [repeated] Type name = number;"""

    type_name: str
    field_name: str
    tag: str
    is_optional: bool = False
    is_repeated: bool = False


@dataclass
class ProtoEnumValue:
    name: str
    tag: str


@dataclass
class ProtoEnum:
    name: str
    values: List[ProtoEnumValue] = field(default_factory=list)


@dataclass
class ProtoOneofField:
    type_name: str
    field_name: str
    tag: str


@dataclass
class ProtoOneof:
    """A oneof group. Every alternative is implicitly singular."""

    name: str
    fields: List[ProtoOneofField] = field(default_factory=list)


@dataclass
class ProtoMessage:
    """A message definition. Entries keep their declaration order."""

    name: str
    entries: List[MessageEntry] = field(default_factory=list)

    @property
    def fields(self) -> List[ProtoField]:
        return [e for e in self.entries if isinstance(e, ProtoField)]

    @property
    def nested_messages(self) -> List[ProtoMessage]:
        return [e for e in self.entries if isinstance(e, ProtoMessage)]

    @property
    def nested_enums(self) -> List[ProtoEnum]:
        return [e for e in self.entries if isinstance(e, ProtoEnum)]

    @property
    def oneofs(self) -> List[ProtoOneof]:
        return [e for e in self.entries if isinstance(e, ProtoOneof)]


MessageEntry = Union[ProtoMessage, ProtoEnum, ProtoOneof, ProtoField]
PackageEntry = Union[ProtoMessage, ProtoEnum]


@dataclass
class ProtoPackage:
    """Top-level parsed representation of a .proto file."""

    name: str
    syntax: str
    imports: List[str] = field(default_factory=list)
    entries: List[PackageEntry] = field(default_factory=list)
