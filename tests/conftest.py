from collections.abc import Callable

import pytest
from faker import Faker
from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from hypothesis import strategies as st
from validate import validate_pb2

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

SIMPLE_PACKAGE = "testdata.simple"
VALIDATE_PACKAGE = "testdata.genvalidate"

PRIMITIVE_TYPES = [
    "double",
    "float",
    "int64",
    "uint64",
    "int32",
    "fixed64",
    "fixed32",
    "bool",
    "string",
    "bytes",
    "uint32",
    "sfixed32",
    "sfixed64",
    "sint32",
    "sint64",
]


def json_name(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def make_field(
    name: str,
    number: int,
    type_: str | int,
    type_name: str | None = None,
    repeated: bool = False,
    oneof_index: int | None = None,
    with_json_name: bool = True,
) -> FieldDescriptorProto:
    """Build a field descriptor the way protoc fills it in."""
    if isinstance(type_, str):
        type_ = FieldDescriptorProto.Type.Value(f"TYPE_{type_.upper()}")
    fd = FieldDescriptorProto(
        name=name,
        number=number,
        type=type_,
        label=FieldDescriptorProto.LABEL_REPEATED if repeated else FieldDescriptorProto.LABEL_OPTIONAL,
    )
    if with_json_name:
        fd.json_name = json_name(name)
    if type_name is not None:
        fd.type_name = type_name
    if oneof_index is not None:
        fd.oneof_index = oneof_index
    return fd


def message_field(name: str, number: int, type_name: str, **kwargs: object) -> FieldDescriptorProto:
    return make_field(name, number, FieldDescriptorProto.TYPE_MESSAGE, type_name=f".{type_name}", **kwargs)  # type: ignore[arg-type]


def map_entry(name: str, value: FieldDescriptorProto | None) -> descriptor_pb2.DescriptorProto:
    entry = descriptor_pb2.DescriptorProto(name=name)
    entry.options.map_entry = True
    entry.field.append(make_field("key", 1, "string"))
    if value is not None:
        value.name = "value"
        value.number = 2
        value.json_name = "value"
        entry.field.append(value)
    return entry


def make_enum(name: str, values: list[tuple[str, int]]) -> descriptor_pb2.EnumDescriptorProto:
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[descriptor_pb2.EnumValueDescriptorProto(name=n, number=v) for n, v in values],
    )


def simple_file() -> descriptor_pb2.FileDescriptorProto:
    """
    A top level enum and a top level message with 16 scalar and enum fields, a nested
    enum and two nested messages, one with a repeated scalar and one with a one-of of
    two messages and two map fields.
    """
    top = descriptor_pb2.DescriptorProto(name="TopMessage")
    for number, primitive in enumerate(PRIMITIVE_TYPES, start=1):
        top.field.append(make_field(f"{primitive}_field", number, primitive))
    top.field.append(
        make_field("enum_field", 16, "enum", type_name=f".{SIMPLE_PACKAGE}.TopLevelEnum"),
    )

    inner1 = descriptor_pb2.DescriptorProto(name="InnerMessage1")
    inner1.field.append(make_field("numbers", 1, "int32", repeated=True))

    inner1_name = f"{SIMPLE_PACKAGE}.TopMessage.InnerMessage1"
    inner2_name = f"{SIMPLE_PACKAGE}.TopMessage.InnerMessage2"
    inner2 = descriptor_pb2.DescriptorProto(name="InnerMessage2")
    inner2.oneof_decl.append(descriptor_pb2.OneofDescriptorProto(name="main_or_stub"))
    inner2.field.extend(
        [
            message_field("main", 1, inner1_name, oneof_index=0),
            message_field("stub", 2, inner1_name, oneof_index=0),
            message_field("msgs", 3, f"{inner2_name}.MsgsEntry", repeated=True),
            message_field("simple_map", 4, f"{inner2_name}.SimpleMapEntry", repeated=True),
        ]
    )
    inner2.nested_type.extend(
        [
            map_entry("MsgsEntry", message_field("value", 2, inner1_name)),
            map_entry("SimpleMapEntry", make_field("value", 2, "string")),
        ]
    )

    top.nested_type.extend([inner1, inner2])
    top.enum_type.append(make_enum("InnerEnum", [("ALPHA", 0), ("BETA", 1)]))

    return descriptor_pb2.FileDescriptorProto(
        name="simple/simple.proto",
        package=SIMPLE_PACKAGE,
        syntax="proto3",
        message_type=[top],
        enum_type=[make_enum("TopLevelEnum", [("FIRST", 0), ("SECOND", 1), ("THIRD", 2)])],
    )


def validate_file() -> descriptor_pb2.FileDescriptorProto:
    """A message carrying protoc-gen-validate rules for every container shape."""
    child_name = f"{VALIDATE_PACKAGE}.Child"
    top_name = f"{VALIDATE_PACKAGE}.TopMessage"
    top = descriptor_pb2.DescriptorProto(name="TopMessage")

    name = make_field("name", 1, "string")
    name.options.Extensions[validate_pb2.rules].string.min_len = 3

    child = message_field("child", 2, child_name)
    child.options.Extensions[validate_pb2.rules].message.required = True

    tags = make_field("tags", 3, "string", repeated=True)
    tags.options.Extensions[validate_pb2.rules].repeated.min_items = 1

    optional_tags = make_field("optional_tags", 4, "string", repeated=True)
    optional_rules = optional_tags.options.Extensions[validate_pb2.rules].repeated
    optional_rules.min_items = 2
    optional_rules.ignore_empty = True

    labels = message_field("labels", 5, f"{top_name}.LabelsEntry", repeated=True)
    labels.options.Extensions[validate_pb2.rules].map.min_pairs = 1

    choice_a = message_field("choice_a", 6, child_name, oneof_index=0)
    choice_a.options.Extensions[validate_pb2.rules].message.required = True
    choice_b = make_field("choice_b", 7, "string", oneof_index=0)

    choice = descriptor_pb2.OneofDescriptorProto(name="choice")
    choice.options.Extensions[validate_pb2.required] = True

    top.field.extend([name, child, tags, optional_tags, labels, choice_a, choice_b])
    top.oneof_decl.append(choice)
    top.nested_type.append(map_entry("LabelsEntry", make_field("value", 2, "string")))

    unchecked = descriptor_pb2.DescriptorProto(name="Unchecked")
    unchecked.options.Extensions[validate_pb2.disabled] = True
    unchecked_name = make_field("name", 1, "string")
    unchecked_name.options.Extensions[validate_pb2.rules].string.min_len = 3
    unchecked.field.append(unchecked_name)

    return descriptor_pb2.FileDescriptorProto(
        name="genvalidate/message.proto",
        package=VALIDATE_PACKAGE,
        syntax="proto3",
        dependency=["validate/validate.proto"],
        message_type=[top, descriptor_pb2.DescriptorProto(name="Child"), unchecked],
    )


def descriptor_set(*files: descriptor_pb2.FileDescriptorProto) -> descriptor_pb2.FileDescriptorSet:
    return descriptor_pb2.FileDescriptorSet(file=list(files))


@pytest.fixture
def simple_set() -> descriptor_pb2.FileDescriptorSet:
    return descriptor_set(simple_file())


@pytest.fixture
def validate_set() -> descriptor_pb2.FileDescriptorSet:
    return descriptor_set(validate_file())


@pytest.fixture
def make_request() -> Callable[..., plugin_pb2.CodeGeneratorRequest]:
    def _make(*files: descriptor_pb2.FileDescriptorProto, parameter: str = "") -> plugin_pb2.CodeGeneratorRequest:
        return plugin_pb2.CodeGeneratorRequest(
            file_to_generate=[f.name for f in files],
            parameter=parameter,
            proto_file=list(files),
        )

    return _make


@pytest.fixture
def field_names(faker: Faker) -> list[str]:
    """Distinct snake case field names."""
    return [faker.unique.word().lower() + "_" + faker.unique.word().lower() for _ in range(8)]


field_name_strategy = st.from_regex(r"[a-z][a-z0-9]{0,6}(_[a-z][a-z0-9]{0,4}){0,2}", fullmatch=True)
