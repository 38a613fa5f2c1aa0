"""Data model for packages, source files and emitted output."""

from .model import (
    CompanionModule,
    FileKind,
    LoadedFile,
    Package,
    Rewrite,
    SourceFile,
    SpecifierKind,
    classify_specifier,
    is_relative_specifier,
    output_path_for,
    strip_source_segment,
)

__all__ = [
    "CompanionModule",
    "FileKind",
    "LoadedFile",
    "Package",
    "Rewrite",
    "SourceFile",
    "SpecifierKind",
    "classify_specifier",
    "is_relative_specifier",
    "output_path_for",
    "strip_source_segment",
]
