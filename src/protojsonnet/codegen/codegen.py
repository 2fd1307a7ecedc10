from collections.abc import Mapping
from importlib.resources import files

from google.protobuf import descriptor_pb2
from google.protobuf.compiler import plugin_pb2

from protojsonnet import log
from protojsonnet.codegen.docs import DOC_PATH, TYPES_FILE, DocGenerator, TypeLinkMap
from protojsonnet.codegen.type_tree import build_type_tree
from protojsonnet.codegen.util import file_path_for_type, template_environment
from protojsonnet.model import Diagnostics, Enum, GeneratorOptions, Message, Type, load

DOC_INDEX_FILE = "index.html"
PKG_PATH = "pkg"
VALIDATORS_FILE = f"{PKG_PATH}/validators.libsonnet"

# static file name -> generated file path
STATIC_FILES = {
    "well-known.libsonnet": f"{PKG_PATH}/well-known.libsonnet",
    "dispatch.libsonnet": f"{PKG_PATH}/dispatch.libsonnet",
    "generator.libsonnet": f"{PKG_PATH}/generator.libsonnet",
    "field-constraints.libsonnet": f"{PKG_PATH}/field-constraints.libsonnet",
    "styles.css": f"{DOC_PATH}/styles.css",
}

GeneratedFile = plugin_pb2.CodeGeneratorResponse.File


class CodeGenerator:
    """
    Generates the jsonnet library and HTML documentation for a set of messages and enums.

    Every type gets a library file under ``pkg/`` and a documentation page under ``doc/``.
    ``types.libsonnet`` ties the libraries together in a namespace tree mirroring the
    protobuf packages.
    """

    def __init__(self, options: GeneratorOptions | None = None) -> None:
        self.options = options or GeneratorOptions()
        self.env = template_environment()
        self.type_map: Mapping[str, Type] = {}
        self.diagnostics = Diagnostics()

    def generate(self, request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
        descriptor_set = descriptor_pb2.FileDescriptorSet(file=request.proto_file)
        self.type_map = load(descriptor_set, self.options, self.diagnostics)

        links = TypeLinkMap.for_types(self.type_map)
        docs = DocGenerator(self.env, self.type_map, links)

        generated: list[GeneratedFile] = []
        for name in sorted(self.type_map):
            t = self.type_map[name]
            log.debug(f"Generating files for {name}")
            generated.append(self.generate_type(t))
            generated.append(GeneratedFile(name=docs.path_for(t), content=docs.page_for(t)))

        generated.append(self.generate_validators())
        generated.append(self.generate_types())
        generated.append(GeneratedFile(name=DOC_INDEX_FILE, content=docs.index_page()))
        generated.extend(self.static_files())

        log.info(f"Generated {len(generated)} files for {len(self.type_map)} types")
        return plugin_pb2.CodeGeneratorResponse(file=generated)

    def _sorted_types(self) -> list[Type]:
        return [self.type_map[name] for name in sorted(self.type_map)]

    def generate_enum(self, enum: Enum) -> str:
        return self.env.get_template("enum.libsonnet.j2").render(enum=enum)

    def generate_message(self, message: Message) -> str:
        field_meta = {name: meta.to_json_dict() for name, meta in message.field_meta().items()}
        oneofs = [oneof.to_json_dict() for oneof in message.oneofs]
        template = self.env.get_template("message.libsonnet.j2")
        return template.render(message=message, field_meta=field_meta, oneofs=oneofs)

    def generate_type(self, t: Type) -> GeneratedFile:
        content = self.generate_message(t) if isinstance(t, Message) else self.generate_enum(t)
        return GeneratedFile(name=f"{PKG_PATH}/{file_path_for_type(t)}.libsonnet", content=content)

    def generate_validators(self) -> GeneratedFile:
        ordered = self._sorted_types()
        content = self.env.get_template("validators.libsonnet.j2").render(
            messages=[t for t in ordered if isinstance(t, Message)],
            enums=[t for t in ordered if isinstance(t, Enum)],
        )
        return GeneratedFile(name=VALIDATORS_FILE, content=content)

    def generate_types(self) -> GeneratedFile:
        tree = build_type_tree(list(self.type_map.values()))
        header = "// Code generated by protoc-gen-jsonnet. DO NOT EDIT.\n"
        return GeneratedFile(name=TYPES_FILE, content=header + tree.render() + "\n")

    @staticmethod
    def static_files() -> list[GeneratedFile]:
        static = files("protojsonnet.codegen").joinpath("static")
        return [
            GeneratedFile(name=target, content=static.joinpath(source).read_text(encoding="utf-8"))
            for source, target in STATIC_FILES.items()
        ]
