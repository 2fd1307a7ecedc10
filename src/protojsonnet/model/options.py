from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict

from protojsonnet import log

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


class GeneratorOptions(BaseModel):
    """Settings for one generation run, fixed before the type model is built."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    skip_validation: bool = False


def _parse_bool(key: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {value!r} for option {key!r}")


def parse_plugin_parameter(parameter: str) -> GeneratorOptions:
    """
    Parse the parameter string protoc passes to the plugin.

    The parameter is a comma separated list of ``key`` or ``key=value`` entries, for
    example ``skip_validation`` or ``skip_validation=false``.

    Args:
        parameter: The raw parameter string, possibly empty

    Returns:
        The parsed options

    Raises:
        ValueError: If an entry has an unknown key or a malformed value
    """
    raw: dict[str, Any] = {}
    for entry in parameter.split(","):
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        key = key.strip()
        raw[key] = _parse_bool(key, value) if sep else True
    log.debug(f"Plugin parameter {parameter!r} parsed as {raw}")
    return GeneratorOptions.model_validate(raw)


def load_generator_options(config_path: Path | None) -> GeneratorOptions:
    """
    Read generator options from a YAML file, the CLI counterpart of the plugin parameter.

    A missing path, an empty document and an empty mapping all yield the defaults.

    Raises:
        TypeError: The document is not a mapping of option names to values
        ValidationError: An option is unknown or has the wrong type
    """
    if config_path is None:
        return GeneratorOptions()

    document = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    log.debug(f"Generator options from {config_path}: {document}")
    if not document:
        return GeneratorOptions()
    if not isinstance(document, dict):
        raise TypeError(f"{config_path} must hold a mapping of generator options, not {type(document).__name__}")
    return GeneratorOptions.model_validate(cast(dict[str, Any], document))
