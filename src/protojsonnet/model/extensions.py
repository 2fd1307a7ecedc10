"""Extraction of protoc-gen-validate metadata from descriptor options."""

from typing import TypeVar, cast

from google.protobuf.descriptor import FieldDescriptor
from google.protobuf.message import Message as ProtoMessage
from validate import validate_pb2

T = TypeVar("T")


class ExtensionTypeError(TypeError):
    """An extension is set but its value cannot be read as the requested type."""


def extract_extension(options: ProtoMessage | None, extension: FieldDescriptor, expected: type[T]) -> T | None:
    """
    Read a custom option from an options message.

    Args:
        options: The options message of a message, one-of or field, possibly absent
        extension: The extension to read
        expected: The Python type the value is expected to have

    Returns:
        A copy of the extension value, or None if the options are absent or empty, if
        they are of a kind the extension does not extend, or if the extension is not set.

    Raises:
        ExtensionTypeError: If the extension is set but its value is not an instance of
            ``expected``.
    """
    if options is None or not options.ListFields():
        return None
    if extension.containing_type.full_name != options.DESCRIPTOR.full_name:
        # such options can never carry the extension
        return None
    if extension not in options.Extensions:
        return None

    value = options.Extensions[extension]
    if not isinstance(value, expected):
        raise ExtensionTypeError(
            f"cannot assign extension type {type(value).__name__!r} to output type {expected.__name__!r}"
        )
    if isinstance(value, ProtoMessage):
        copied = type(value)()
        copied.CopyFrom(value)
        return cast(T, copied)
    return value


def should_disable_validation(options: ProtoMessage | None) -> bool:
    """Whether a message opts out of validation with ``option (validate.disabled) = true``."""
    return bool(extract_extension(options, validate_pb2.disabled, bool))


def is_oneof_required(options: ProtoMessage | None) -> bool:
    """Whether a one-of is marked with ``option (validate.required) = true``."""
    return bool(extract_extension(options, validate_pb2.required, bool))


def get_validation_rules(options: ProtoMessage | None) -> validate_pb2.FieldRules | None:
    """The ``(validate.rules)`` attached to a field, if any."""
    return extract_extension(options, validate_pb2.rules, validate_pb2.FieldRules)
