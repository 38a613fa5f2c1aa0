"""JSON exporter for build results (machine-friendly manifest)."""

import json
from pathlib import Path
from typing import Any, Dict, List

from layout.model import CompanionModule
from repack.builder import BuildResult


def to_json(result: BuildResult, indent: int = 2) -> str:
    """
    Convert a build result to a JSON manifest.
    
    Args:
        result: The build result to export.
        indent: JSON indentation level.
    
    Returns:
        JSON string with the packages and every emitted file, including the
        specifier rewrites of transformed files.
    """
    root = result.output_root
    
    files: List[Dict[str, Any]] = []
    for item in result.iter_emitted():
        entry: Dict[str, Any] = {
            "path": _get_path_str(item.path, root),
            "size": len(item.content),
        }
        if isinstance(item, CompanionModule):
            entry["kind"] = "companion"
        else:
            entry["kind"] = item.kind.value
            if item.rewrites:
                entry["rewrites"] = [
                    {"line": r.line, "from": r.original, "to": r.resolved}
                    for r in item.rewrites
                ]
        files.append(entry)
    
    data: Dict[str, Any] = {
        "source_root": str(result.config.source_root),
        "output_root": str(root),
        "written": result.written,
        "packages": sorted(p.name for p in result.packages),
        "files": files,
    }
    
    return json.dumps(data, indent=indent)


def _get_path_str(path: Path, root: Path) -> str:
    """Get the string representation of a path."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()
