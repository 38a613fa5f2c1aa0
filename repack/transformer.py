"""Source transformer: rewrites module specifiers in TypeScript files."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Tuple

from layout.model import FileKind, LoadedFile, Rewrite, SourceFile, output_path_for
from .config import NOCHECK_MARKER, BuildConfig
from .errors import RepackError
from .parser import ModuleDeclaration, ModuleTree, StringLiteral, parse_module
from .resolver import resolve_specifier

logger = logging.getLogger(__name__)

DeclarationHook = Callable[[ModuleDeclaration], ModuleDeclaration]

BOM = "\ufeff"


def file_kind(path: Path, config: BuildConfig) -> FileKind:
    """Classify a file by name."""
    if path.name.endswith(config.source_extension):
        return FileKind.TRANSFORMABLE
    return FileKind.OPAQUE


def visit(tree: ModuleTree, hook: DeclarationHook) -> ModuleTree:
    """
    Walk a tree, passing every module declaration through ``hook``.
    
    Other nodes are carried over as-is. The hook returns either the node it
    was given or a replacement; the input tree is never modified.
    
    The walk is single-level: the parser already flattens declarations found
    inside nested blocks (such as ``declare module`` bodies) into the
    top-level node sequence.
    """
    return ModuleTree(tuple(
        hook(node) if isinstance(node, ModuleDeclaration) else node
        for node in tree.nodes
    ))


def transform_source(
    text: str,
    file_path: Path,
    config: BuildConfig,
) -> Tuple[str, List[Rewrite]]:
    """
    Rewrite every import/export specifier in one TypeScript source.
    
    Args:
        text: Source text.
        file_path: Absolute path of the file (resolution base).
        config: Build configuration.
    
    Returns:
        The transformed text, prefixed with the type-check suppression
        marker, and the list of specifier rewrites performed.
    
    Raises:
        ResolutionError: On the first specifier that cannot be resolved. No
        text is returned in that case.
    """
    referencing_dir = file_path.parent
    rewrites: List[Rewrite] = []
    
    def rewrite(node: ModuleDeclaration) -> ModuleDeclaration:
        original = node.specifier.value
        resolved = resolve_specifier(original, referencing_dir, config, source_file=file_path)
        rewrites.append(Rewrite(original=original, resolved=resolved, line=node.line))
        if resolved == original:
            return node
        logger.debug("%s:%d: '%s' -> '%s'", file_path, node.line, original, resolved)
        literal = StringLiteral(value=resolved, quote=node.specifier.quote)
        return replace(node, specifier=literal)
    
    if text.startswith(BOM):
        text = text[len(BOM):]
    tree = visit(parse_module(text), rewrite)
    return NOCHECK_MARKER + tree.print(), rewrites


def transform_file(source: SourceFile, config: BuildConfig) -> LoadedFile:
    """
    Produce the output artifact for one source file.
    
    Transformable files are decoded as UTF-8 and rewritten; opaque files are
    passed through byte for byte.
    """
    path = output_path_for(source.path, config.source_root, config.output_root)
    
    if source.kind is not FileKind.TRANSFORMABLE:
        return LoadedFile(path=path, content=source.content, kind=source.kind)
    
    try:
        decoded = source.content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise RepackError(f"{source.path} is not valid UTF-8: {e}") from e
    
    text, rewrites = transform_source(decoded, source.path, config)
    return LoadedFile(
        path=path,
        content=text.encode("utf-8"),
        kind=source.kind,
        rewrites=tuple(rewrites),
    )
