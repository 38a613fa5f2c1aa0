"""Module specifier resolution for the target runtime."""

import os
from pathlib import Path, PurePosixPath
from typing import Optional

from layout.model import (
    SpecifierKind,
    classify_specifier,
    is_relative_specifier,
    strip_source_segment,
)
from .config import BuildConfig
from .errors import ResolutionError


def resolve_specifier(
    specifier: str,
    referencing_dir: Path,
    config: BuildConfig,
    source_file: Optional[Path] = None,
) -> str:
    """
    Rewrite a module specifier into the form the target runtime requires.
    
    Relative specifiers are resolved against the filesystem with an ordered
    fallback search:
    1. A directory -> its ``index.ts``.
    2. A sibling with the source extension (``.ts``).
    3. A sibling with the declaration extension (``.d.ts``).
    4. The literal path, when it is already a complete filename.
    
    Bare specifiers must have an entry in the resolution mapping. Mapped
    values that are themselves relative point into the source root and are
    re-expressed relative to the referencing file's output location; any
    other value (typically a URL) is returned verbatim.
    
    Args:
        specifier: Specifier text as written in the source.
        referencing_dir: Absolute directory of the file containing it.
        config: Build configuration holding the mapping and extensions.
        source_file: File containing the specifier, used in error messages.
    
    Returns:
        The rewritten specifier.
    
    Raises:
        ResolutionError: If no candidate exists or the bare name is unmapped.
    """
    origin = source_file or referencing_dir
    
    kind = classify_specifier(specifier, config.module_map)
    
    if kind is SpecifierKind.RELATIVE:
        target = _resolve_relative(specifier, referencing_dir, config, origin)
        return _relative_specifier(target, referencing_dir)
    
    if kind is SpecifierKind.UNRESOLVABLE:
        raise ResolutionError(specifier, origin, "no entry in the module map")
    
    mapped = config.module_map[specifier]
    
    if not is_relative_specifier(mapped):
        return mapped
    
    target = _normalize(config.source_root / mapped)
    output_dir = _output_dir(referencing_dir, config.source_root)
    return _relative_specifier(target, output_dir)


def _resolve_relative(
    specifier: str,
    referencing_dir: Path,
    config: BuildConfig,
    origin: Path,
) -> Path:
    module_path = _normalize(referencing_dir / specifier)
    source_path = Path(f"{module_path}{config.source_extension}")
    declaration_path = Path(f"{module_path}{config.declaration_extension}")
    
    if module_path.is_dir():
        return module_path / config.entry_module
    if source_path.exists():
        return source_path
    if declaration_path.exists():
        return declaration_path
    if module_path.exists():
        return module_path
    
    raise ResolutionError(specifier, origin, f"no candidate for {module_path}")


def _output_dir(referencing_dir: Path, source_root: Path) -> Path:
    """Re-root a source directory so it matches the output layout."""
    try:
        relative = referencing_dir.relative_to(source_root)
    except ValueError:
        return referencing_dir
    return source_root.joinpath(strip_source_segment(relative))


def _normalize(path: Path) -> Path:
    """Collapse ``.`` and ``..`` segments without following symlinks."""
    return Path(os.path.normpath(path))


def _relative_specifier(target: Path, from_dir: Path) -> str:
    relative = PurePosixPath(*Path(os.path.relpath(target, from_dir)).parts).as_posix()
    if not relative.startswith("."):
        relative = f"./{relative}"
    return relative
