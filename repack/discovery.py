"""Package and file discovery for the source tree."""

from pathlib import Path
from typing import Iterator, List, Optional, Set

from layout.model import Package
from .config import BuildConfig


def list_packages(
    source_root: Path,
    exclude_packages: Set[str],
    output_root: Optional[Path] = None,
) -> List[Package]:
    """
    List package directories directly below the source root.
    
    Args:
        source_root: Directory containing one subdirectory per package.
        exclude_packages: Package names to skip.
        output_root: Output root used to fill in ``Package.output_path``
                     (default: the source root itself).
    
    Returns:
        Packages sorted by name.
    
    Raises:
        OSError: If the source root cannot be listed.
    """
    source_root = source_root.resolve()
    if output_root is None:
        output_root = source_root
    
    packages = []
    for entry in sorted(source_root.iterdir()):
        if not entry.is_dir() or entry.name in exclude_packages:
            continue
        packages.append(Package(
            name=entry.name,
            source_path=entry,
            output_path=output_root / entry.name,
        ))
    return packages


def iter_package_files(
    package_dir: Path,
    exclude_dirs: Set[str],
    exclude_files: Set[str],
) -> Iterator[Path]:
    """
    Iterate over every file in a package.
    
    Args:
        package_dir: Package directory to scan.
        exclude_dirs: Directory names skipped directly below ``package_dir``
                      (build output, dependency caches, tests). Deeper
                      directories with these names are still descended.
        exclude_files: File names skipped at every depth.
    
    Yields:
        Absolute paths of the included files.
    """
    def _walk(current: Path, at_root: bool) -> Iterator[Path]:
        for entry in sorted(current.iterdir()):
            if entry.name in exclude_files:
                continue
            if entry.is_dir():
                if at_root and entry.name in exclude_dirs:
                    continue
                yield from _walk(entry, False)
            elif entry.is_file():
                yield entry
    
    # Not resolved: a symlinked package must stay under the source root.
    yield from _walk(package_dir, True)


def collect_files(package: Package, config: BuildConfig) -> List[Path]:
    """List all files of a package using the configured exclusions."""
    return list(iter_package_files(package.source_path, config.exclude_dirs, config.exclude_files))
