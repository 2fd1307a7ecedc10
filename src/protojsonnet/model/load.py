"""Construction of the type registry from a descriptor set."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum as PyEnum
from types import MappingProxyType

from google.protobuf import descriptor_pb2

from protojsonnet import log
from protojsonnet.model.extensions import (
    ExtensionTypeError,
    get_validation_rules,
    is_oneof_required,
    should_disable_validation,
)
from protojsonnet.model.options import GeneratorOptions
from protojsonnet.model.types import (
    ContainerType,
    Enum,
    Field,
    FieldType,
    Message,
    OneOf,
    Type,
    TypeBase,
)

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

MAP_VALUE_FIELD = "value"


class DiagnosticKind(str, PyEnum):
    MALFORMED_EXTENSION = "malformed_extension"
    UNRESOLVED_MAP_TYPE = "unresolved_map_type"
    MAP_ENTRY_WITHOUT_VALUE = "map_entry_without_value"


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    subject: str
    message: str


class Diagnostics:
    """Collects the cases where loading degraded instead of failing."""

    def __init__(self) -> None:
        self._entries: list[Diagnostic] = []

    def add(self, kind: DiagnosticKind, subject: str, message: str) -> None:
        self._entries.append(Diagnostic(kind, subject, message))

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [entry for entry in self._entries if entry.kind is kind]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def _parent_chain(parent: Message | None) -> tuple[str, ...]:
    return parent.base.child_parents() if parent is not None else ()


def extract_field_type_and_name(fd: FieldDescriptorProto) -> tuple[FieldType, str]:
    """
    Classify a field and compute its type name.

    Messages and enums are named by their fully qualified name without the leading dot,
    primitives by the lower case protobuf type, e.g. ``int32`` or ``string``.
    """
    if fd.type == FieldDescriptorProto.TYPE_MESSAGE:
        return FieldType.MESSAGE, fd.type_name.removeprefix(".")
    if fd.type == FieldDescriptorProto.TYPE_ENUM:
        return FieldType.ENUM, fd.type_name.removeprefix(".")
    type_name = FieldDescriptorProto.Type.Name(fd.type)
    return FieldType.PRIMITIVE, type_name.removeprefix("TYPE_").lower()


def new_enum(package: str, descriptor: descriptor_pb2.EnumDescriptorProto, parent: Message | None = None) -> Enum:
    return Enum(base=TypeBase(package, descriptor.name, _parent_chain(parent)), descriptor=descriptor)


class ModelBuilder:
    """Builds messages and enums for one load, applying the generator options."""

    def __init__(self, options: GeneratorOptions, diagnostics: Diagnostics) -> None:
        self.options = options
        self.diagnostics = diagnostics

    def _degrade(self, subject: str, what: str, err: ExtensionTypeError) -> None:
        log.warning(f"Error getting {what} for {subject}, {err}, continue")
        self.diagnostics.add(DiagnosticKind.MALFORMED_EXTENSION, subject, str(err))

    def validation_enabled(self, qualified_name: str, descriptor: descriptor_pb2.DescriptorProto) -> bool:
        if self.options.skip_validation:
            return False
        try:
            return not should_disable_validation(
                descriptor.options if descriptor.HasField("options") else None
            )
        except ExtensionTypeError as err:
            self._degrade(qualified_name, "disable options", err)
            return False

    def _oneof(self, qualified_name: str, decl: descriptor_pb2.OneofDescriptorProto, validate: bool) -> OneOf:
        required = False
        if validate:
            try:
                required = is_oneof_required(decl.options if decl.HasField("options") else None)
            except ExtensionTypeError as err:
                self._degrade(f"{qualified_name}.{decl.name}", "one-of options", err)
        return OneOf(group=decl.name, required=required)

    def _field(self, qualified_name: str, fd: FieldDescriptorProto, oneofs: list[OneOf], validate: bool) -> Field:
        rules = None
        if validate:
            try:
                rules = get_validation_rules(fd.options if fd.HasField("options") else None)
            except ExtensionTypeError as err:
                self._degrade(f"{qualified_name}.{fd.name}", "validation rules", err)

        oneof_group = ""
        if fd.HasField("oneof_index"):
            oneof = oneofs[fd.oneof_index]
            oneof.fields.append(fd.name)
            oneof_group = oneof.group

        field_type, type_name = extract_field_type_and_name(fd)
        container_type = ContainerType.NONE
        if fd.label == FieldDescriptorProto.LABEL_REPEATED:
            # maps are repeated map entry messages and are promoted once all types are known
            container_type = ContainerType.LIST

        return Field(
            descriptor=fd,
            field_type=field_type,
            container_type=container_type,
            type_name=type_name,
            oneof_group=oneof_group,
            rules=rules,
        )

    def new_message(
        self, package: str, descriptor: descriptor_pb2.DescriptorProto, parent: Message | None = None
    ) -> Message:
        message = Message(base=TypeBase(package, descriptor.name, _parent_chain(parent)), descriptor=descriptor)
        qualified_name = message.qualified_name
        validate = self.validation_enabled(qualified_name, descriptor)

        message.oneofs = [self._oneof(qualified_name, decl, validate) for decl in descriptor.oneof_decl]
        message.fields = [self._field(qualified_name, fd, message.oneofs, validate) for fd in descriptor.field]
        message.nested_messages = [self.new_message(package, nested, message) for nested in descriptor.nested_type]
        message.nested_enums = [new_enum(package, nested, message) for nested in descriptor.enum_type]

        message.fields.sort(key=lambda fld: fld.name)
        log.debug(f"Built message {qualified_name} with {len(message.fields)} fields")
        return message


class Loader:
    """Registers every type of a descriptor set and resolves map fields."""

    def __init__(self, options: GeneratorOptions | None = None, diagnostics: Diagnostics | None = None) -> None:
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.builder = ModelBuilder(options or GeneratorOptions(), self.diagnostics)
        self.types: dict[str, Type] = {}

    def register_type(self, registered: Type) -> None:
        self.types[registered.qualified_name] = registered

    def add_nested_types(self, parent: Message) -> None:
        for child_enum in parent.nested_enums:
            self.register_type(child_enum)
        for child in parent.nested_messages:
            self.register_type(child)
            self.add_nested_types(child)

    def map_value_type(self, candidate: Type, subject: str) -> str | None:
        """The type name of the ``value`` field if ``candidate`` is a map entry message."""
        if not isinstance(candidate, Message) or not candidate.is_map_entry:
            return None
        # JSON map keys are always strings, only the value type matters
        value_field = candidate.field_by_name(MAP_VALUE_FIELD)
        if value_field is None:
            log.debug(f"Map entry {candidate.qualified_name} used by {subject} has no value field")
            self.diagnostics.add(
                DiagnosticKind.MAP_ENTRY_WITHOUT_VALUE, subject, f"{candidate.qualified_name} has no value field"
            )
            return None
        return value_field.type_name

    def update_map_types(self) -> None:
        for registered in self.types.values():
            if not isinstance(registered, Message):
                continue
            for fld in registered.fields:
                if fld.container_type is not ContainerType.LIST or fld.field_type is not FieldType.MESSAGE:
                    continue
                subject = f"{registered.qualified_name}.{fld.name}"
                target = self.types.get(fld.type_name)
                if target is None:
                    log.debug(f"Type {fld.type_name} of {subject} is not registered, keeping list")
                    self.diagnostics.add(DiagnosticKind.UNRESOLVED_MAP_TYPE, subject, f"{fld.type_name} not found")
                    continue
                value_type = self.map_value_type(target, subject)
                if value_type is not None:
                    fld.promote_to_map(value_type)

    def load(self, descriptor_set: descriptor_pb2.FileDescriptorSet) -> Mapping[str, Type]:
        for file in descriptor_set.file:
            package = file.package
            for enum_descriptor in file.enum_type:
                self.register_type(new_enum(package, enum_descriptor))
            for message_descriptor in file.message_type:
                message = self.builder.new_message(package, message_descriptor)
                self.register_type(message)
                self.add_nested_types(message)
        self.update_map_types()
        log.info(f"Loaded {len(self.types)} types from {len(descriptor_set.file)} files")
        return MappingProxyType(self.types)


def load(
    descriptor_set: descriptor_pb2.FileDescriptorSet,
    options: GeneratorOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> Mapping[str, Type]:
    """
    Build the type registry for a descriptor set.

    Args:
        descriptor_set: The files to load, including their dependencies
        options: Generator options, defaults apply when omitted
        diagnostics: Optional collector receiving the cases that degraded silently

    Returns:
        A read-only mapping of fully qualified type name to message or enum
    """
    return Loader(options, diagnostics).load(descriptor_set)
