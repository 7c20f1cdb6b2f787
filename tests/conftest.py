import os
from pathlib import Path

import pytest


@pytest.fixture
def root(tmp_path):
    """Canonical temporary project root."""
    project = tmp_path / "project"
    project.mkdir()
    return Path(os.path.realpath(project))


@pytest.fixture
def make_tree(root):
    """Write a {relative_path: content} mapping under ``root``."""

    def _make(files, base=None):
        base = Path(base) if base else root
        for relative, content in files.items():
            path = base / relative
            if relative.endswith("/"):
                path.mkdir(parents=True, exist_ok=True)
                continue
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        return base

    return _make


@pytest.fixture
def under(root):
    """Build the set of absolute paths for relative names under ``root``."""

    def _under(*relative):
        return {str(root / r) for r in relative}

    return _under
