"""Build configuration: exclusion sets, resolution mapping and file loading."""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Union

try:
    import tomllib
except ImportError:  # Python < 3.11
    import tomli as tomllib  # type: ignore

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


SOURCE_EXTENSION = ".ts"
DECLARATION_EXTENSION = ".d.ts"
ENTRY_MODULE = "index.ts"
COMPANION_NAME = "mod.ts"
NOCHECK_MARKER = "// @ts-nocheck\n"

COMPANION_TEMPLATE = """import Default from './{entry}';
export * from './{entry}';
export default Default;
"""

DEFAULT_SOURCE_ROOT = Path("packages")
DEFAULT_OUTPUT_ROOT = Path("packages/deno/packages")

DEFAULT_EXCLUDE_PACKAGES = frozenset({
    "converter", "deno", "plugin-example",
    "plugin-prisma", "plugin-prisma-crud",
    "test-utils", "plugin-federation",
})

# Skipped only directly below a package directory.
DEFAULT_EXCLUDE_DIRS = frozenset({
    "esm", "lib", "test", "tests", "node_modules",
})

# Skipped at every depth.
DEFAULT_EXCLUDE_FILES = frozenset({
    "package.json", "tsconfig.json", "tsconfig.tsbuildinfo",
    "CHANGELOG.md", ".npmignore", "babel.config.js",
})

DEFAULT_MODULE_MAP: Mapping[str, str] = MappingProxyType({
    "graphql": "https://cdn.skypack.dev/graphql?dts",
    "zod": "https://cdn.skypack.dev/zod@v1.11.17?dts",
    "dataloader": "https://cdn.skypack.dev/dataloader?dts",
    "@pothos/core": "./core/index.ts",
    "@pothos/plugin-directives": "./plugin-directives/index.ts",
    "graphql/execution/values": "https://cdn.skypack.dev/graphql/execution/values?dts",
})

CONFIG_KEYS = {
    "source_root", "output_root",
    "exclude_packages", "exclude_dirs", "exclude_files",
    "module_map", "extend_module_map",
}


@dataclass(frozen=True)
class BuildConfig:
    """
    Immutable settings for a single run.
    
    The resolution mapping is stored as a read-only view so that it can be
    shared by every concurrently running transform.
    """

    source_root: Path = DEFAULT_SOURCE_ROOT
    output_root: Path = DEFAULT_OUTPUT_ROOT
    exclude_packages: FrozenSet[str] = DEFAULT_EXCLUDE_PACKAGES
    exclude_dirs: FrozenSet[str] = DEFAULT_EXCLUDE_DIRS
    exclude_files: FrozenSet[str] = DEFAULT_EXCLUDE_FILES
    module_map: Mapping[str, str] = field(default_factory=lambda: DEFAULT_MODULE_MAP)
    source_extension: str = SOURCE_EXTENSION
    declaration_extension: str = DECLARATION_EXTENSION
    entry_module: str = ENTRY_MODULE
    companion_name: str = COMPANION_NAME

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__.
        object.__setattr__(self, "source_root", Path(self.source_root).resolve())
        object.__setattr__(self, "output_root", Path(self.output_root).resolve())
        for name in ("exclude_packages", "exclude_dirs", "exclude_files"):
            object.__setattr__(self, name, frozenset(getattr(self, name)))
        if not isinstance(self.module_map, MappingProxyType):
            object.__setattr__(self, "module_map", MappingProxyType(dict(self.module_map)))

    @property
    def companion_content(self) -> str:
        """Text of the per-package companion module."""
        return COMPANION_TEMPLATE.format(entry=self.entry_module)

    def with_overrides(self, **overrides: Any) -> "BuildConfig":
        """Return a copy with the given fields replaced (``None`` values ignored)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def _read_config_file(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")
    
    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
        else:
            raise ConfigError(f"Unsupported config format '{suffix}' for {path}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e
    
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def _string_set(value: Any, key: str, path: Path) -> FrozenSet[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: '{key}' must be a list of strings")
    return frozenset(value)


def _string_map(value: Any, key: str, path: Path) -> Dict[str, str]:
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ConfigError(f"{path}: '{key}' must be a table of strings")
    return dict(value)


def load_config(
    path: Optional[Union[str, Path]] = None,
    base: Optional[BuildConfig] = None,
) -> BuildConfig:
    """
    Load a BuildConfig from a YAML or TOML file.
    
    Args:
        path: Config file (``.yaml``, ``.yml`` or ``.toml``). If None, the
              defaults are returned.
        base: Config to start from (default: built-in defaults).
    
    Returns:
        The merged configuration.
    
    Raises:
        ConfigError: If the file is malformed or contains unknown keys.
    """
    config = base or BuildConfig()
    if path is None:
        return config
    
    path = Path(path).resolve()
    data = _read_config_file(path)
    
    unknown = set(data) - CONFIG_KEYS
    if unknown:
        raise ConfigError(f"{path}: unknown config keys: {', '.join(sorted(unknown))}")
    if "module_map" in data and "extend_module_map" in data:
        raise ConfigError(f"{path}: use either 'module_map' or 'extend_module_map', not both")
    
    changes: Dict[str, Any] = {}
    for key in ("source_root", "output_root"):
        if key in data:
            if not isinstance(data[key], str):
                raise ConfigError(f"{path}: '{key}' must be a string")
            # Relative roots are anchored at the config file.
            changes[key] = path.parent / data[key]
    for key in ("exclude_packages", "exclude_dirs", "exclude_files"):
        if key in data:
            changes[key] = _string_set(data[key], key, path)
    if "module_map" in data:
        changes["module_map"] = _string_map(data["module_map"], "module_map", path)
    elif "extend_module_map" in data:
        merged = dict(config.module_map)
        merged.update(_string_map(data["extend_module_map"], "extend_module_map", path))
        changes["module_map"] = merged
    
    logger.debug("Loaded config from %s (%s)", path, ", ".join(sorted(changes)) or "no changes")
    return replace(config, **changes)


def merge_module_map(config: BuildConfig, entries: Iterable[str]) -> BuildConfig:
    """
    Add ``NAME=TARGET`` entries to the resolution mapping.
    
    Raises:
        ConfigError: If an entry has no ``=`` or an empty name or target.
    """
    merged = dict(config.module_map)
    for entry in entries:
        name, sep, target = entry.partition("=")
        if not sep or not name or not target:
            raise ConfigError(f"Invalid mapping '{entry}', expected NAME=TARGET")
        merged[name] = target
    return replace(config, module_map=merged)
