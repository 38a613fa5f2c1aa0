"""Repackaging pipeline: discovery, specifier resolution, transform and emit."""

from .builder import BuildResult, build, build_async
from .config import BuildConfig, load_config
from .discovery import iter_package_files, list_packages
from .errors import ConfigError, RepackError, ResolutionError
from .parser import parse_module
from .resolver import resolve_specifier
from .transformer import transform_file, transform_source, visit

__all__ = [
    "BuildConfig",
    "BuildResult",
    "ConfigError",
    "RepackError",
    "ResolutionError",
    "build",
    "build_async",
    "iter_package_files",
    "list_packages",
    "load_config",
    "parse_module",
    "resolve_specifier",
    "transform_file",
    "transform_source",
    "visit",
]
