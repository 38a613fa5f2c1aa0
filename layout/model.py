"""Data model for the repackaging pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePath
from typing import Mapping, Tuple


# Directory directly below a package root that holds its implementation sources.
SOURCE_SEGMENT = "src"


class FileKind(str, Enum):
    """How a source file is handled by the transformer."""

    TRANSFORMABLE = "transformable"
    OPAQUE = "opaque"


class SpecifierKind(str, Enum):
    """Classification of a module specifier before resolution."""

    RELATIVE = "relative"
    MAPPED = "mapped"
    UNRESOLVABLE = "unresolvable"


@dataclass(frozen=True)
class Package:
    """A package directory under the source root and its output location."""

    name: str
    source_path: Path
    output_path: Path


@dataclass(frozen=True)
class SourceFile:
    """A file read from a package, never mutated after loading."""

    path: Path
    content: bytes
    kind: FileKind


@dataclass(frozen=True)
class Rewrite:
    """One module specifier that was replaced in an emitted file."""

    original: str
    resolved: str
    line: int


@dataclass(frozen=True)
class LoadedFile:
    """
    A transformed (or passed-through) file ready to be written.
    
    ``rewrites`` is empty for opaque files.
    """

    path: Path
    content: bytes
    kind: FileKind = FileKind.OPAQUE
    rewrites: Tuple[Rewrite, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CompanionModule:
    """Synthesized re-export module written at a package's output root."""

    package: str
    path: Path
    content: bytes


def is_relative_specifier(specifier: str) -> bool:
    """Check if a specifier starts with a same/parent-directory marker."""
    return specifier.startswith(".")


def classify_specifier(specifier: str, module_map: Mapping[str, str]) -> SpecifierKind:
    """
    Classify a module specifier against the resolution mapping.
    
    Args:
        specifier: Raw specifier text as written in the import/export.
        module_map: Bare name -> URL or source-root-relative path.
    
    Returns:
        The SpecifierKind the resolver will treat it as.
    """
    if is_relative_specifier(specifier):
        return SpecifierKind.RELATIVE
    if specifier in module_map:
        return SpecifierKind.MAPPED
    return SpecifierKind.UNRESOLVABLE


def strip_source_segment(relative_path: PurePath) -> PurePath:
    """
    Remove the implementation-sources segment from a source-root-relative path.
    
    ``core/src/util.ts`` becomes ``core/util.ts``. Only a ``src`` directory
    directly below the package directory is removed; paths without one are
    returned unchanged.
    
    Args:
        relative_path: Path relative to the source root, package name first.
    
    Returns:
        The normalized relative path.
    """
    parts = relative_path.parts
    if len(parts) >= 2 and parts[1] == SOURCE_SEGMENT:
        return type(relative_path)(parts[0], *parts[2:])
    return relative_path


def output_path_for(path: Path, source_root: Path, output_root: Path) -> Path:
    """
    Derive the output location of a path under the source root.
    
    Args:
        path: Absolute path of a file (or directory) inside the source root.
        source_root: Absolute source root.
        output_root: Absolute output root.
    
    Returns:
        The mirrored path under the output root, with the source segment removed.
    
    Raises:
        ValueError: If ``path`` is not inside ``source_root``.
    """
    relative = path.relative_to(source_root)
    return output_root.joinpath(strip_source_segment(relative))
