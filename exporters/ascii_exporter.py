"""ASCII tree-style exporter for the planned output layout."""

from pathlib import Path
from typing import Dict, List, Tuple

from layout.model import CompanionModule, FileKind
from repack.builder import BuildResult


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "

# Directory name -> subtree; files map to their display label.
_Tree = Dict[str, object]


def to_ascii(result: BuildResult, style: str = "tree") -> str:
    """
    Render the files of a build result as a directory tree.
    
    Args:
        result: The build result to export.
        style: Output style - "tree" (Unicode) or "ascii" (pure ASCII).
    
    Returns:
        Tree string rooted at the output root; empty when nothing is emitted.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)
    
    emitted = result.iter_emitted()
    if not emitted:
        return ""
    
    tree: _Tree = {}
    for item in emitted:
        parts = _relative_parts(item.path, result.output_root)
        node = tree
        for part in parts[:-1]:
            node = node.setdefault(part, {})  # type: ignore[assignment]
        node[parts[-1]] = _label(item)
    
    lines: List[str] = [result.output_root.as_posix()]
    _render(tree, "", chars, lines)
    return "\n".join(lines)


def _label(item) -> str:
    if isinstance(item, CompanionModule):
        return "[COMPANION]"
    if item.kind is FileKind.TRANSFORMABLE:
        return f"({len(item.rewrites)} specifiers)"
    return ""


def _render(tree: _Tree, prefix: str, chars: Tuple[str, str, str, str], lines: List[str]) -> None:
    """Recursively render directories first, then files, each sorted by name."""
    branch, last, vertical, space = chars
    
    dirs = sorted(name for name, value in tree.items() if isinstance(value, dict))
    files = sorted(name for name, value in tree.items() if not isinstance(value, dict))
    names = dirs + files
    
    for index, name in enumerate(names):
        is_last = index == len(names) - 1
        connector = last if is_last else branch
        value = tree[name]
        if isinstance(value, dict):
            lines.append(f"{prefix}{connector}{name}/")
            _render(value, prefix + (space if is_last else vertical), chars, lines)
        else:
            label = f" {value}" if value else ""
            lines.append(f"{prefix}{connector}{name}{label}")


def _relative_parts(path: Path, root: Path) -> Tuple[str, ...]:
    try:
        return path.relative_to(root).parts
    except ValueError:
        return path.parts
