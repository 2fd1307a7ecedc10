"""Jsonnet library and documentation generator."""

from .codegen import CodeGenerator

__all__ = ["CodeGenerator"]
