"""Render the directory tree and the final bundle document."""

import os
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Optional


def display_path(path: str, root: Optional[str] = None) -> str:
    """Forward-slash path relative to ``root`` when it lies under it."""
    if root:
        try:
            return Path(path).relative_to(root).as_posix()
        except ValueError:
            pass
    return Path(path).as_posix()


def is_under(path: str, root: str) -> bool:
    try:
        Path(path).relative_to(root)
    except ValueError:
        return False
    return True


def generate_path_tree(paths: Iterable[str]) -> str:
    """
    Draw the hierarchy of ``paths`` as an indented tree.

    Paths are split on forward slashes; siblings are sorted by name.
    """
    tree: Dict[str, dict] = {}
    for path in paths:
        normalized = os.path.normpath(path).replace(os.sep, "/")
        if normalized in (".", ""):
            continue
        node = tree
        for part in PurePosixPath(normalized).parts:
            node = node.setdefault(part, {})

    lines = []
    _draw(tree, "", lines)
    return "".join(lines)


def _draw(node: Dict[str, dict], prefix: str, lines: list):
    names = sorted(node)
    for i, name in enumerate(names):
        is_last = i == len(names) - 1
        lines.append(f"{prefix}{'└── ' if is_last else '├── '}{name}\n")
        _draw(node[name], prefix + ("    " if is_last else "│   "), lines)


def create_project_string(
    project_tree: str,
    content_map: Dict[str, str],
    root: Optional[str] = None,
    external_paths: Iterable[str] = (),
) -> str:
    """
    Build the Markdown bundle: the tree first, then every non-blank entry
    of ``content_map`` in path order, fenced and tagged by extension.

    ``external_paths`` are files that live outside ``root``; they are listed
    under their own heading instead of being drawn into the tree.
    """
    title = Path(root).name if root else "project"
    parts = [
        f"# Codebase Bundle: {title}\n\n",
        "## File and Folder Structure\n\n",
        "```\n",
        project_tree,
        "```\n\n",
    ]

    external_paths = sorted(external_paths)
    if external_paths:
        parts.append("## Files Outside the Project Root\n\n")
        for path in external_paths:
            parts.append(f"- `{Path(path).as_posix()}`\n")
        parts.append("\n")

    parts.append("---\n\n")

    for path in sorted(content_map):
        content = content_map[path]
        if not content.strip():
            continue
        suffix = Path(path).suffix
        file_extension = suffix[1:].lower() if suffix else "txt"
        parts.append(f"## `{display_path(path, root)}`\n\n")
        parts.append(f"```{file_extension}\n")
        parts.append(content.strip())
        parts.append("\n```\n\n")

    return "".join(parts)
