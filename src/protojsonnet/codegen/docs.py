"""HTML documentation for the generated library."""

import base64
import re
from collections.abc import Mapping
from dataclasses import dataclass

from jinja2 import Environment
from markupsafe import Markup, escape

from protojsonnet.codegen.util import file_path_for_type
from protojsonnet.model import Enum, Field, FieldType, Message, Type, name_for_first_value

TYPES_FILE = "types.libsonnet"
DOC_PATH = "doc"

BOOL_TYPES = {"bool", "google.protobuf.BoolValue"}
STRING_TYPES = {"string", "google.protobuf.StringValue"}
BYTES_TYPES = {"bytes", "google.protobuf.BytesValue"}
NUMBER_WRAPPER_TYPES = {
    "google.protobuf.DoubleValue",
    "google.protobuf.FloatValue",
    "google.protobuf.Int32Value",
    "google.protobuf.Int64Value",
    "google.protobuf.UInt32Value",
    "google.protobuf.UInt64Value",
}

LINK_PATTERN = re.compile(r"_([me])_\((.+?)\)")
COLLECTION_CHARS = "[]{}"


@dataclass(frozen=True)
class TypeLinkMap:
    """Doc page targets keyed by qualified type name."""

    targets: Mapping[str, str]

    @classmethod
    def for_types(cls, type_map: Mapping[str, Type]) -> "TypeLinkMap":
        return cls({name: file_path_for_type(t) for name, t in type_map.items()})

    def link(self, name: str) -> str | None:
        return self.targets.get(name)

    def sorted_items(self) -> list[tuple[str, str]]:
        return sorted(self.targets.items())


class DocGenerator:
    """Renders the enum, message and index pages."""

    def __init__(self, env: Environment, type_map: Mapping[str, Type], links: TypeLinkMap) -> None:
        self.env = env
        self.type_map = type_map
        self.links = links

    def field_example(self, fld: Field) -> str:
        type_name = fld.type_name
        if type_name in BOOL_TYPES:
            return "false"
        if type_name in STRING_TYPES:
            return "'string'"
        if type_name in BYTES_TYPES:
            return "'" + base64.b64encode(b"string").decode("ascii") + "'"
        if type_name in NUMBER_WRAPPER_TYPES:
            return "1"
        if fld.field_type is FieldType.MESSAGE:
            return f"_m_(types.{type_name})"
        if fld.field_type is FieldType.ENUM:
            target = self.type_map.get(type_name)
            enum = target if isinstance(target, Enum) else None
            return f"_e_(types.{type_name}.{name_for_first_value(enum)})"
        return "1"

    def _link_reference(self, match: re.Match[str]) -> str:
        what, name = match.group(1), match.group(2)
        qualified_name = name.removeprefix("types.")
        if what == "e":
            qualified_name = qualified_name.rpartition(".")[0]
        target = self.links.link(qualified_name)
        if target is None:
            return name
        return f'<a href="../{target}.html">{name}</a>'

    def message_example(self, message: Message) -> Markup:
        """Example builder chain for a message with type references linked to their pages."""
        lines = [f"local types = import '{TYPES_FILE}';", "", f"types.{message.qualified_name}"]
        for fld in message.fields:
            value = self.field_example(fld)
            if fld.is_list:
                value = f"[{value}]"
            elif fld.is_map:
                value = f"{{ 'key': {value} }}"
            lines.append(f"    .{fld.setter_name}({value})")
        lines.append("    ._validate()")

        code = str(escape("\n".join(lines)))
        code = LINK_PATTERN.sub(self._link_reference, code)
        for ch in COLLECTION_CHARS:
            code = code.replace(ch, f"<span class='coll'>{ch}</span>")
        return Markup(code)

    def enum_page(self, enum: Enum) -> str:
        template = self.env.get_template("enum.html")
        return template.render(object=enum, links=self.links, styles_path="..")

    def message_page(self, message: Message) -> str:
        template = self.env.get_template("message.html")
        return template.render(
            object=message,
            links=self.links,
            styles_path="..",
            example=self.message_example(message),
        )

    def index_page(self) -> str:
        template = self.env.get_template("index.html")
        return template.render(links=self.links, styles_path=DOC_PATH)

    def page_for(self, t: Type) -> str:
        if isinstance(t, Message):
            return self.message_page(t)
        return self.enum_page(t)

    @staticmethod
    def path_for(t: Type) -> str:
        return f"{DOC_PATH}/{file_path_for_type(t)}.html"
