"""Type model for protobuf descriptor sets."""

from .extensions import ExtensionTypeError, extract_extension
from .load import Diagnostic, DiagnosticKind, Diagnostics, load
from .options import GeneratorOptions, load_generator_options, parse_plugin_parameter
from .types import (
    ContainerType,
    Enum,
    Field,
    FieldMeta,
    FieldType,
    Message,
    OneOf,
    Type,
    TypeKind,
    name_for_first_value,
)

__all__ = [
    "ContainerType",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "Enum",
    "ExtensionTypeError",
    "Field",
    "FieldMeta",
    "FieldType",
    "GeneratorOptions",
    "Message",
    "OneOf",
    "Type",
    "TypeKind",
    "extract_extension",
    "load",
    "load_generator_options",
    "name_for_first_value",
    "parse_plugin_parameter",
]
