import pytest

from protoc_prost.generator.rust_prost_generator import (
    KIND_ENUM,
    KIND_MESSAGE,
    Scope,
    ScopeEntry,
    generate_rust,
)
from protoc_prost.parser.errors import InvalidFieldError
from protoc_prost.parser.proto_ast_parser import parse_proto


def _generate(body: str, syntax: str = "proto3") -> str:
    proto = f'syntax = "{syntax}";\npackage demo;\n{body}'
    return generate_rust(parse_proto(proto))


class TestScalarFields:
    def test_simple_message(self):
        out = _generate("""
message OrderInfo {
    int32 order_id = 1;
    string customer_name = 2;
    repeated int32 scores = 3;
    bytes payload = 4;
    fixed64 checksum = 5;
}
""")
        assert out == """\
#[derive(Clone, PartialEq, ::prost::Message)]
pub struct OrderInfo {
    #[prost(int32, tag="1")]
    pub order_id: i32,
    #[prost(string, tag="2")]
    pub customer_name: ::prost::alloc::string::String,
    #[prost(int32, repeated, tag="3")]
    pub scores: ::prost::alloc::vec::Vec<i32>,
    #[prost(bytes="vec", tag="4")]
    pub payload: ::prost::alloc::vec::Vec<u8>,
    #[prost(fixed64, tag="5")]
    pub checksum: u64,
}
"""

    def test_empty_message(self):
        assert _generate("message Empty {}") == """\
#[derive(Clone, PartialEq, ::prost::Message)]
pub struct Empty {
}
"""

    def test_keyword_field_name_is_escaped(self):
        out = _generate("message M { uint32 type = 1; bool type_set = 2; }")
        assert "    pub r#type: u32,\n" in out
        assert "    pub type_set: bool,\n" in out


class TestPacking:
    def test_proto2_repeated_scalar_is_unpacked(self):
        out = _generate("message M { repeated int32 ids = 1; }", syntax="proto2")
        assert '#[prost(int32, repeated, packed="false", tag="1")]' in out

    def test_proto3_repeated_scalar_has_no_override(self):
        out = _generate("message M { repeated int32 ids = 1; }", syntax="proto3")
        assert '#[prost(int32, repeated, tag="1")]' in out
        assert "packed" not in out

    def test_proto2_length_delimited_and_custom_types_not_overridden(self):
        out = _generate("""
enum Color { RED = 0; }
message Item {}
message M {
    repeated string names = 1;
    repeated bytes blobs = 2;
    repeated Item items = 3;
    repeated Color colors = 4;
}
""", syntax="proto2")
        assert "packed" not in out
        assert '#[prost(enumeration="Color", repeated, tag="4")]' in out
        assert "    pub colors: ::prost::alloc::vec::Vec<i32>,\n" in out


class TestPresence:
    def test_singular_message_field_is_always_optional(self):
        out = _generate("""
message Item {}
message M {
    Item item = 1;
    int32 count = 2;
}
""")
        assert '#[prost(message, optional, tag="1")]' in out
        assert "    pub item: ::core::option::Option<Item>,\n" in out
        assert '#[prost(int32, tag="2")]' in out
        assert "    pub count: i32,\n" in out

    def test_repeated_message_field_is_not_optional(self):
        out = _generate("""
message Item {}
message M { repeated Item items = 1; }
""")
        assert '#[prost(message, repeated, tag="1")]' in out
        assert "    pub items: ::prost::alloc::vec::Vec<Item>,\n" in out

    def test_explicit_optional_scalar(self):
        out = _generate("message M { optional int32 count = 1; }", syntax="proto2")
        assert '#[prost(int32, optional, tag="1")]' in out
        assert "    pub count: ::core::option::Option<i32>,\n" in out

    def test_optional_repeated_string_is_allowed(self):
        out = _generate("message M { optional repeated string names = 1; }")
        assert '#[prost(string, optional, repeated, tag="1")]' in out
        assert (
            "    pub names: ::core::option::Option<"
            "::prost::alloc::vec::Vec<::prost::alloc::string::String>>,\n"
        ) in out

    def test_optional_repeated_packable_scalar_is_rejected(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            _generate("message M { optional repeated int32 ids = 1; }")
        assert exc_info.value.message_name == "M"
        assert exc_info.value.field_name == "ids"

    def test_optional_repeated_enum_is_rejected(self):
        with pytest.raises(InvalidFieldError):
            _generate("enum E { A = 0; } message M { optional repeated E es = 1; }")


class TestNestedTypes:
    PROTO = """
enum Status {
    STATUS_UNKNOWN = 0;
    STATUS_OK = 1;
}

message Outer {
    Status status = 1;
    Inner inner = 2;
    message Inner {
        Outer parent = 1;
        Kind kind = 2;
    }
    enum Kind {
        KIND_A = 0;
    }
    oneof choice {
        string name = 3;
        Inner detail = 4;
    }
}
"""

    def test_full_output(self):
        assert _generate(self.PROTO) == """\
#[derive(Clone, Copy, Debug, PartialEq, Eq, Hash, PartialOrd, Ord, ::prost::Enumeration)]
#[repr(i32)]
pub enum Status {
    StatusUnknown = 0,
    StatusOk = 1,
}
#[derive(Clone, PartialEq, ::prost::Message)]
pub struct Outer {
    #[prost(enumeration="Status", tag="1")]
    pub status: i32,
    #[prost(message, optional, tag="2")]
    pub inner: ::core::option::Option<outer::Inner>,
    #[prost(oneof="outer::Choice", tags="3, 4")]
    pub choice: ::core::option::Option<outer::Choice>,
}
/// Nested message and enum types in `Outer`.
pub mod outer {
    #[derive(Clone, PartialEq, ::prost::Message)]
    pub struct Inner {
        #[prost(message, optional, tag="1")]
        pub parent: ::core::option::Option<super::Outer>,
        #[prost(enumeration="Kind", tag="2")]
        pub kind: i32,
    }
    #[derive(Clone, Copy, Debug, PartialEq, Eq, Hash, PartialOrd, Ord, ::prost::Enumeration)]
    #[repr(i32)]
    pub enum Kind {
        KindA = 0,
    }
    #[derive(Clone, PartialEq, ::prost::Oneof)]
    pub enum Choice {
        #[prost(string, tag="3")]
        Name(::prost::alloc::string::String),
        #[prost(message, tag="4")]
        Detail(Inner),
    }
}
"""

    def test_deep_nesting_escapes_outward(self):
        out = _generate("""
enum Top { TOP_A = 0; }
message A {
    message B {
        message C {
            A a = 1;
            Top top = 2;
            B b = 3;
            Sibling sibling = 4;
        }
        message Sibling {}
    }
}
""")
        assert "            pub a: ::core::option::Option<super::super::A>,\n" in out
        assert '#[prost(enumeration="super::super::Top", tag="2")]' in out
        assert "            pub b: ::core::option::Option<super::B>,\n" in out
        assert "            pub sibling: ::core::option::Option<Sibling>,\n" in out
        assert "    pub mod b {\n" in out

    def test_sibling_scopes_are_isolated(self):
        out = _generate("""
message First {
    enum Mode { MODE_A = 0; }
    Mode mode = 1;
}
message Second {
    Mode mode = 1;
}
""")
        assert '#[prost(enumeration="first::Mode", tag="1")]' in out
        # Second cannot see First's nested enum, so Mode falls back to a message.
        assert "    pub mode: ::core::option::Option<Mode>,\n" in out

    def test_oneof_with_enum_alternative(self):
        out = _generate("""
enum Color { RED = 0; }
message M {
    oneof value {
        Color color = 1;
        bytes raw = 2;
        Other other = 3;
    }
}
""")
        assert '        #[prost(enumeration="super::Color", tag="1")]\n        Color(i32),\n' in out
        assert '        #[prost(bytes="vec", tag="2")]\n        Raw(::prost::alloc::vec::Vec<u8>),\n' in out
        assert '        #[prost(message, tag="3")]\n        Other(super::Other),\n' in out


class TestEnums:
    def test_tags_are_verbatim(self):
        out = _generate("enum Gappy { FIRST = 0; TENTH = 10; DUP = 10; }")
        assert "    First = 0,\n    Tenth = 10,\n    Dup = 10,\n" in out


class TestScope:
    def test_extended_does_not_mutate_parent(self):
        parent = Scope({"A": ScopeEntry(KIND_ENUM, -1)})
        child = parent.extended([("B", ScopeEntry(KIND_MESSAGE, 0))])
        assert "B" in child
        assert "A" in child
        assert "B" not in parent
        assert len(parent) == 1

    def test_inner_name_shadows_outer(self):
        parent = Scope({"A": ScopeEntry(KIND_ENUM, -1)})
        child = parent.extended([("A", ScopeEntry(KIND_MESSAGE, 1))])
        assert child.lookup("A") == ScopeEntry(KIND_MESSAGE, 1)
        assert parent.lookup("A") == ScopeEntry(KIND_ENUM, -1)


class TestDeterminism:
    def test_same_input_same_output(self):
        assert _generate(TestNestedTypes.PROTO) == _generate(TestNestedTypes.PROTO)
