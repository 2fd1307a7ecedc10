import logging
from pathlib import Path

import rich_click as click
from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2
from rich.console import Console
from rich.table import Table
from rich.traceback import install

from protojsonnet import __version__, log
from protojsonnet.codegen import CodeGenerator
from protojsonnet.model import Diagnostics, GeneratorOptions, Message, load, load_generator_options

descriptor_set_option = click.option(
    "--descriptor-set",
    "-d",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Binary FileDescriptorSet, as written by protoc --descriptor_set_out (use --include_imports).",
)

skip_validation_option = click.option(
    "--skip-validation",
    is_flag=True,
    default=False,
    help="Ignore protoc-gen-validate rules attached to the schema.",
)

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file containing generator options",
)


def read_descriptor_set(path: Path) -> descriptor_pb2.FileDescriptorSet:
    descriptor_set = descriptor_pb2.FileDescriptorSet()
    descriptor_set.ParseFromString(path.read_bytes())
    log.debug(f"Read {len(descriptor_set.file)} files from {path}")
    return descriptor_set


def resolve_options(config: Path | None, skip_validation: bool) -> GeneratorOptions:
    options = load_generator_options(config)
    if skip_validation:
        options = options.model_copy(update={"skip_validation": True})
    return options


def report_diagnostics(diagnostics: Diagnostics) -> None:
    for diagnostic in diagnostics:
        log.warning(f"{diagnostic.subject}: {diagnostic.message} ({diagnostic.kind.value})")


@click.group(context_settings={"auto_envvar_prefix": "protojsonnet"})
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    help="Log level",
    show_default=True,
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Log file",
)
@click.version_option(__version__)
def cli(log_level: str, log_file: Path | None) -> None:
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setFormatter(logging.Formatter("%(asctime)s:%(levelname)s:%(message)s"))
        log.addHandler(file_handler)

    log.setLevel(log_level.upper())
    if log_level.upper() == "DEBUG":
        _ = install(show_locals=True)


# Generate
# ----------
@cli.command
@descriptor_set_option
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, writable=True, path_type=Path),
    required=True,
    help="Output directory",
)
@skip_validation_option
@config_option
def generate(descriptor_set: Path, output: Path, skip_validation: bool, config: Path | None) -> None:
    """Generate the jsonnet library and documentation from a descriptor set."""
    files = read_descriptor_set(descriptor_set)
    request = plugin_pb2.CodeGeneratorRequest(
        file_to_generate=[f.name for f in files.file],
        proto_file=files.file,
    )
    generator = CodeGenerator(resolve_options(config, skip_validation))
    response = generator.generate(request)
    report_diagnostics(generator.diagnostics)

    for generated in response.file:
        target = output / generated.name
        target.parent.mkdir(parents=True, exist_ok=True)
        _ = target.write_text(generated.content, encoding="utf-8")
    log.info(f"Wrote {len(response.file)} files to '{output}'")


# Inspect
# ----------
@cli.command
@descriptor_set_option
@skip_validation_option
@config_option
def inspect(descriptor_set: Path, skip_validation: bool, config: Path | None) -> None:
    """List the types resolved from a descriptor set."""
    diagnostics = Diagnostics()
    type_map = load(read_descriptor_set(descriptor_set), resolve_options(config, skip_validation), diagnostics)

    table = Table("Type", "Kind", "Fields", "One-ofs")
    for name in sorted(type_map):
        t = type_map[name]
        if isinstance(t, Message):
            table.add_row(name, t.kind.value, str(len(t.fields)), str(len(t.oneofs)))
        else:
            table.add_row(name, t.kind.value, "", "")
    Console().print(table)
    report_diagnostics(diagnostics)


if __name__ == "__main__":
    cli()
