"""Shared fixtures: temporary package trees."""

from pathlib import Path

import pytest

from repack.config import BuildConfig


def write_tree(root: Path, files: dict) -> None:
    """Create ``files`` (relative path -> text or bytes) under ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "packages"
    root.mkdir()
    return root


@pytest.fixture
def make_config(tmp_path, source_root):
    def _make(**overrides):
        overrides.setdefault("source_root", source_root)
        overrides.setdefault("output_root", tmp_path / "out")
        return BuildConfig(**overrides)
    
    return _make


@pytest.fixture
def write_files():
    return write_tree
