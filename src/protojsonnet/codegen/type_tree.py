"""Namespace tree of packages used to emit the ``types.libsonnet`` entry point."""

from collections.abc import Collection
from dataclasses import dataclass, field

from protojsonnet.codegen.util import file_path_for_type
from protojsonnet.model import Type

INDENT = "  "


@dataclass(frozen=True)
class TypeEntry:
    """A leaf of the tree referring to a registered top level type."""

    type: Type

    def render(self) -> str:
        return f"(import 'pkg/{file_path_for_type(self.type)}.libsonnet').definition"


@dataclass
class PackageNode:
    """A package namespace owning child namespaces and type entries by name."""

    children: dict[str, "PackageNode | TypeEntry"] = field(default_factory=dict)

    def ensure_package(self, elements: list[str]) -> "PackageNode":
        """Return the node for a package path, creating missing namespaces."""
        node = self
        for element in elements:
            child = node.children.get(element)
            if child is None:
                child = PackageNode()
                node.children[element] = child
            if not isinstance(child, PackageNode):
                raise ValueError(f"package element {element!r} clashes with type {child.type.qualified_name}")
            node = child
        return node

    def add_type(self, t: Type) -> None:
        node = self.ensure_package(t.package.split(".") if t.package else [])
        existing = node.children.get(t.name)
        if isinstance(existing, PackageNode):
            raise ValueError(f"type {t.qualified_name} clashes with a package of the same name")
        node.children[t.name] = TypeEntry(t)

    def render(self, depth: int = 0) -> str:
        if not self.children:
            return "{}"
        inner = INDENT * (depth + 1)
        lines = ["{"]
        for name in sorted(self.children):
            child = self.children[name]
            value = child.render(depth + 1) if isinstance(child, PackageNode) else child.render()
            lines.append(f"{inner}'{name}': {value},")
        lines.append(INDENT * depth + "}")
        return "\n".join(lines)


def build_type_tree(types: Collection[Type]) -> PackageNode:
    """Build the package tree for all top level types."""
    root = PackageNode()
    for t in types:
        if t.package:
            root.ensure_package(t.package.split("."))
    for t in types:
        if t.is_top_level:
            root.add_type(t)
    return root
