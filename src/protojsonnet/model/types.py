"""Resolved type model built from protobuf descriptors."""

from dataclasses import dataclass, field
from enum import Enum as PyEnum
from typing import Any, TypeAlias

from google.protobuf import descriptor_pb2
from google.protobuf.json_format import MessageToDict
from pydantic import BaseModel, ConfigDict, Field as PydanticField
from validate import validate_pb2

UNKNOWN_ENUM_VALUE = "UNKNOWN"


class FieldType(str, PyEnum):
    PRIMITIVE = "primitive"
    ENUM = "enum"
    MESSAGE = "message"


class ContainerType(str, PyEnum):
    NONE = ""
    LIST = "list"
    MAP = "map"


class TypeKind(str, PyEnum):
    MESSAGE = "message"
    ENUM = "enum"


def to_json_name(name: str) -> str:
    """Derive the lowerCamel JSON name protoc assigns to a field name."""
    parts: list[str] = []
    capitalize_next = False
    for ch in name:
        if ch == "_":
            capitalize_next = True
        elif capitalize_next:
            parts.append(ch.upper())
            capitalize_next = False
        else:
            parts.append(ch)
    return "".join(parts)


@dataclass(frozen=True)
class TypeBase:
    """Identity shared by messages and enums.

    Attributes:
        package: Package of the file declaring the type, may be empty
        name: Local type name
        parents: Local names of the enclosing messages, outermost first
    """

    package: str
    name: str
    parents: tuple[str, ...] = ()

    @property
    def is_top_level(self) -> bool:
        return not self.parents

    @property
    def nested_name(self) -> str:
        """The dotted name of the type without the package."""
        return ".".join((*self.parents, self.name))

    @property
    def qualified_name(self) -> str:
        """The dotted name of the type including the package, the registry key."""
        if not self.package:
            return self.nested_name
        return f"{self.package}.{self.nested_name}"

    def child_parents(self) -> tuple[str, ...]:
        """Parent chain for types declared directly inside this one."""
        return (*self.parents, self.name)


class FieldMeta(BaseModel):
    """Attributes of a field needed by generated code."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str
    allowed_names: list[str] = PydanticField(alias="allowedNames")
    container_type: ContainerType = PydanticField(default=ContainerType.NONE, alias="containerType")
    required: bool = False
    constraints: dict[str, Any] | None = None

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with JSON aliases, leaving out empty optional attributes."""
        data = self.model_dump(mode="json", by_alias=True)
        if self.container_type is ContainerType.NONE:
            del data["containerType"]
        if not self.required:
            del data["required"]
        if self.constraints is None:
            del data["constraints"]
        return data


@dataclass
class Field:
    """A field of a message with its resolved type information."""

    descriptor: descriptor_pb2.FieldDescriptorProto
    field_type: FieldType
    container_type: ContainerType
    type_name: str
    oneof_group: str = ""
    rules: validate_pb2.FieldRules | None = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def json_name(self) -> str:
        if self.descriptor.HasField("json_name"):
            return self.descriptor.json_name
        return to_json_name(self.descriptor.name)

    @property
    def allowed_names(self) -> list[str]:
        """The names that may be used to refer to this field."""
        names = [self.name]
        if self.json_name != self.name:
            names.append(self.json_name)
        return names

    @property
    def setter_name(self) -> str:
        name = self.json_name
        return "with" + name[:1].upper() + name[1:]

    @property
    def is_list(self) -> bool:
        return self.container_type is ContainerType.LIST

    @property
    def is_map(self) -> bool:
        return self.container_type is ContainerType.MAP

    @property
    def in_oneof(self) -> bool:
        return self.descriptor.HasField("oneof_index")

    @property
    def validation_rules(self) -> validate_pb2.FieldRules | None:
        return self.rules

    @property
    def is_required(self) -> bool:
        """
        Whether the field must be present in a valid object.

        Message level required flags are ignored for one-of members. Presence of the
        member key is what selects the one-of branch, so required-ness of a one-of is
        expressed on the group instead.
        """
        if self.rules is None:
            return False
        rule_kind = self.rules.WhichOneof("type")
        if self.container_type is ContainerType.NONE:
            return self.rules.HasField("message") and self.rules.message.required and not self.in_oneof
        if self.container_type is ContainerType.LIST:
            repeated = self.rules.repeated
            return rule_kind == "repeated" and not repeated.ignore_empty and repeated.min_items > 0
        if self.container_type is ContainerType.MAP:
            map_rules = self.rules.map
            return rule_kind == "map" and not map_rules.ignore_empty and map_rules.min_pairs > 0
        return False

    @property
    def constraints(self) -> dict[str, Any] | None:
        """The type specific rules of the field as plain JSON data."""
        if self.rules is None:
            return None
        rule_kind = self.rules.WhichOneof("type")
        if rule_kind is None:
            return None
        payload = MessageToDict(getattr(self.rules, rule_kind), preserving_proto_field_name=True)
        return {rule_kind: payload}

    def promote_to_map(self, value_type_name: str) -> None:
        """Turn a list field backed by a synthetic map entry into a map of its value type."""
        if self.container_type is not ContainerType.LIST:
            raise ValueError(f"field {self.name} is {self.container_type.value or 'scalar'}, only lists become maps")
        self.container_type = ContainerType.MAP
        self.type_name = value_type_name

    def meta(self) -> FieldMeta:
        return FieldMeta(
            type=self.type_name,
            allowed_names=self.allowed_names,
            container_type=self.container_type,
            required=self.is_required,
            constraints=self.constraints,
        )


@dataclass
class OneOf:
    """A one-of group and the names of its member fields in declaration order."""

    group: str
    required: bool = False
    fields: list[str] = field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return {"fields": list(self.fields), "required": self.required, "group": self.group}


@dataclass
class Enum:
    """A protobuf enum definition."""

    base: TypeBase
    descriptor: descriptor_pb2.EnumDescriptorProto | None = None
    kind: TypeKind = field(default=TypeKind.ENUM, init=False)

    @property
    def name(self) -> str:
        return self.base.name

    @property
    def package(self) -> str:
        return self.base.package

    @property
    def is_top_level(self) -> bool:
        return self.base.is_top_level

    @property
    def nested_name(self) -> str:
        return self.base.nested_name

    @property
    def qualified_name(self) -> str:
        return self.base.qualified_name

    @property
    def values(self) -> list[tuple[str, int]]:
        """The (name, number) pairs in declaration order."""
        if self.descriptor is None:
            return []
        return [(value.name, value.number) for value in self.descriptor.value]

    def map(self) -> dict[str, str]:
        return {name: name for name, _ in self.values}

    def value_map(self) -> dict[str, str]:
        return {name: str(number) for name, number in self.values}

    def reverse_map(self) -> dict[str, str]:
        # aliased numbers keep the last declared name
        return {str(number): name for name, number in self.values}

    def name_for_first_value(self) -> str:
        values = self.values
        if not values:
            return UNKNOWN_ENUM_VALUE
        return values[0][0]


def name_for_first_value(enum: Enum | None) -> str:
    """Natural default value name for an enum that may not have been resolved."""
    if enum is None:
        return UNKNOWN_ENUM_VALUE
    return enum.name_for_first_value()


@dataclass
class Message:
    """A protobuf message with its fields, one-of groups and nested types."""

    base: TypeBase
    descriptor: descriptor_pb2.DescriptorProto
    fields: list[Field] = field(default_factory=list)
    oneofs: list[OneOf] = field(default_factory=list)
    nested_messages: list["Message"] = field(default_factory=list)
    nested_enums: list[Enum] = field(default_factory=list)
    kind: TypeKind = field(default=TypeKind.MESSAGE, init=False)

    @property
    def name(self) -> str:
        return self.base.name

    @property
    def package(self) -> str:
        return self.base.package

    @property
    def is_top_level(self) -> bool:
        return self.base.is_top_level

    @property
    def nested_name(self) -> str:
        return self.base.nested_name

    @property
    def qualified_name(self) -> str:
        return self.base.qualified_name

    @property
    def is_map_entry(self) -> bool:
        """True for the synthetic key/value messages protoc creates for map fields."""
        return self.descriptor.HasField("options") and self.descriptor.options.map_entry

    def field_by_name(self, name: str) -> Field | None:
        for fld in self.fields:
            if fld.name == name:
                return fld
        return None

    def field_meta(self) -> dict[str, FieldMeta]:
        """Field metadata keyed by canonical field name."""
        return {fld.name: fld.meta() for fld in self.fields}


Type: TypeAlias = Message | Enum
