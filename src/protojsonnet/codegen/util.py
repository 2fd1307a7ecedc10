import json
from typing import Any

from caseconverter import kebabcase
from jinja2 import Environment, PackageLoader, select_autoescape

from protojsonnet.model import Type

DEFAULT_PACKAGE = "_default"


def to_json(data: Any) -> str:
    """Indented JSON with sorted keys, for use in templates."""
    return json.dumps(data, indent=2, sort_keys=True)


def to_terse_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"))


def file_name_for_type(t: Type) -> str:
    """Kebab case file name for a type, nesting levels are joined with dashes."""
    return str(kebabcase(t.nested_name.replace(".", "-")))


def file_path_for_type(t: Type) -> str:
    """Path of the generated files for a type, relative to the output kind directory."""
    package = t.package or DEFAULT_PACKAGE
    return f"{package}/{file_name_for_type(t)}"


def template_environment() -> Environment:
    env = Environment(
        loader=PackageLoader("protojsonnet.codegen", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["json"] = to_json
    env.filters["terse_json"] = to_terse_json
    env.filters["file_name"] = file_name_for_type
    env.filters["file_path"] = file_path_for_type
    return env
