"""Build orchestrator: discovery, concurrent transform and tree emission."""

import asyncio
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Union

from layout.model import CompanionModule, LoadedFile, Package, SourceFile, output_path_for
from .config import BuildConfig
from .discovery import collect_files, list_packages
from .errors import ConfigError, RepackError
from .transformer import file_kind, transform_file

logger = logging.getLogger(__name__)

Emitted = Union[LoadedFile, CompanionModule]


@dataclass
class BuildResult:
    """Everything a run produced (or would produce, for a dry run)."""

    config: BuildConfig
    packages: List[Package] = field(default_factory=list)
    files: List[LoadedFile] = field(default_factory=list)
    companions: List[CompanionModule] = field(default_factory=list)
    written: bool = False

    @property
    def output_root(self) -> Path:
        return self.config.output_root

    def iter_emitted(self) -> List[Emitted]:
        """All artifacts in output path order."""
        emitted: List[Emitted] = [*self.files, *self.companions]
        return sorted(emitted, key=lambda item: item.path)

    @property
    def rewrite_count(self) -> int:
        return sum(len(f.rewrites) for f in self.files)


def companion_for(package: Package, config: BuildConfig) -> CompanionModule:
    """Build the re-export companion module for a package."""
    return CompanionModule(
        package=package.name,
        path=package.output_path / config.companion_name,
        content=config.companion_content.encode("utf-8"),
    )


def check_roots(config: BuildConfig) -> None:
    """
    Refuse output roots whose removal would delete the sources.
    
    Raises:
        ConfigError: If the output root is the source root or contains it.
    """
    source, output = config.source_root, config.output_root
    if output == source or output in source.parents:
        raise ConfigError(f"Output root {output} would remove the source root {source}")


def check_collisions(paths: List[Path], config: BuildConfig) -> None:
    """
    Make sure no two source files map onto the same output path.
    
    Raises:
        RepackError: Naming both source files, e.g. for ``core/index.ts`` and
        ``core/src/index.ts``.
    """
    seen: Dict[Path, Path] = {}
    for path in paths:
        target = output_path_for(path, config.source_root, config.output_root)
        if target in seen:
            raise RepackError(f"{seen[target]} and {path} both map to {target}")
        seen[target] = path


def remove_tree(path: Path) -> None:
    """Delete a directory tree; a missing tree is not an error."""
    if path.exists():
        shutil.rmtree(path)


async def load_file(path: Path, config: BuildConfig) -> LoadedFile:
    """Read one file and run it through the transformer."""
    content = await asyncio.to_thread(path.read_bytes)
    source = SourceFile(path=path, content=content, kind=file_kind(path, config))
    return transform_file(source, config)


async def write_output(path: Path, content: bytes) -> None:
    """Create the parent directories of ``path`` and write ``content``."""
    def _write():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    
    await asyncio.to_thread(_write)


async def build_async(config: BuildConfig, dry_run: bool = False) -> BuildResult:
    """
    Run the full pipeline.
    
    Every file is transformed before anything is written, so a resolution
    failure leaves no transformed output behind (the output root has already
    been cleared at that point).
    
    Args:
        config: Build configuration.
        dry_run: If True, transform everything but do not touch the output root.
    
    Returns:
        BuildResult describing the packages and emitted files.
    
    Raises:
        ResolutionError: If any specifier in any file cannot be resolved.
        RepackError: If two source files map onto the same output path.
        OSError: On any filesystem failure.
    """
    check_roots(config)
    logger.info("Repackaging %s -> %s", config.source_root, config.output_root)
    
    if not dry_run:
        await asyncio.to_thread(remove_tree, config.output_root)
    
    packages = await asyncio.to_thread(
        list_packages, config.source_root, config.exclude_packages, config.output_root
    )
    logger.info("Found %d packages: %s", len(packages), ", ".join(p.name for p in packages))
    
    file_lists = await asyncio.gather(*(
        asyncio.to_thread(collect_files, package, config) for package in packages
    ))
    paths = [path for files in file_lists for path in files]
    companions = [companion_for(package, config) for package in packages]
    check_collisions(paths, config)
    
    files = list(await asyncio.gather(*(load_file(path, config) for path in paths)))
    
    companion_paths = {companion.path for companion in companions}
    for loaded in files:
        if loaded.path in companion_paths:
            logger.warning("%s is replaced by the generated companion module", loaded.path)
    files = [loaded for loaded in files if loaded.path not in companion_paths]
    
    result = BuildResult(config=config, packages=packages, files=files, companions=companions)
    logger.info(
        "Transformed %d files (%d specifiers) in %d packages",
        len(files), result.rewrite_count, len(packages),
    )
    
    if dry_run:
        return result
    
    await asyncio.gather(*(write_output(item.path, item.content) for item in result.iter_emitted()))
    result.written = True
    logger.info("Wrote %d files to %s", len(files) + len(companions), config.output_root)
    return result


def build(config: BuildConfig, dry_run: bool = False) -> BuildResult:
    """Synchronous entry point for :func:`build_async`."""
    return asyncio.run(build_async(config, dry_run=dry_run))
