"""
File selection: turn include globs, exclude globs and an explicit file list
into one deduplicated list of absolute paths under a root directory.

Precedence, from strongest to weakest:

1. explicit files are always part of the result;
2. exclude patterns drop a path (and prune a directory's subtree), except
   that a directory holding an explicit file is still walked;
3. include patterns pick what remains; no include patterns means
   everything.

Directories that end up with no selected file beneath them are pruned from
the result unless asked otherwise.
"""

import logging
import os
import stat
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .errors import MissingExplicitFileError
from .patterns import (
    compile_pattern,
    matches_any,
    preprocess_exclude_patterns,
    to_relative_posix,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionRequest:
    root: str
    include_patterns: Sequence[str] = ()
    exclude_patterns: Sequence[str] = ()
    explicit_files: Sequence[str] = ()


def canonical_path(path: str) -> str:
    """
    Absolute form of ``path`` with every symlink in its parent chain resolved.

    The final component is kept as given, so a symlinked file keeps its own
    name instead of turning into its target.
    """
    absolute = os.path.abspath(path)
    parent, name = os.path.split(absolute)
    if not name:
        return os.path.realpath(absolute)
    return os.path.join(os.path.realpath(parent), name)


def resolve_explicit_files(explicit_files: Iterable[str], strict: bool = True) -> List[str]:
    """
    Canonicalize the files that must always be bundled.

    Missing paths raise MissingExplicitFileError listing all of them when
    ``strict``; otherwise they are dropped with a warning. Directories are
    ignored, the override only applies to files.
    """
    resolved: List[str] = []
    missing: List[str] = []
    for entry in explicit_files:
        if not entry:
            continue
        path = canonical_path(entry)
        if not os.path.exists(path):
            missing.append(entry)
            continue
        if os.path.isdir(path):
            log.debug(f"Ignoring directory passed as explicit file: {entry}")
            continue
        if path not in resolved:
            resolved.append(path)

    if missing:
        if strict:
            raise MissingExplicitFileError(missing)
        log.warning(f"Skipping explicit files that do not exist: {', '.join(missing)}")

    return resolved


def _raise_walk_error(error: OSError):
    raise error


def _has_explicit_descendant(directory: str, explicit: Set[str]) -> bool:
    prefix = directory + os.sep
    return any(path.startswith(prefix) for path in explicit)


def _classify(
    path: str,
    relative_path: str,
    is_dir: bool,
    include_patterns: Sequence[str],
    exclude_patterns: Sequence[str],
    explicit: Set[str],
) -> Tuple[bool, bool]:
    """
    Decide what happens to one walked entry.

    Returns ``(keep, descend)``: whether the entry joins the candidates and,
    for directories, whether the walk goes inside it.
    """
    if matches_any(exclude_patterns, relative_path):
        if is_dir and _has_explicit_descendant(path, explicit):
            log.debug(f"Walking excluded directory for explicit files: {relative_path}")
            return False, True
        log.debug(f"Excluding by pattern: {relative_path}")
        return False, False

    included = not include_patterns or matches_any(include_patterns, relative_path)
    if not included:
        log.debug(f"Not matched by include patterns: {relative_path}")
    return included, True


def walk(
    root: str,
    include_patterns: Sequence[str],
    exclude_patterns: Sequence[str],
    explicit: Optional[Set[str]] = None,
) -> List[str]:
    """
    Depth-first walk of ``root`` returning candidate paths.

    ``exclude_patterns`` are expected to be preprocessed already. The root
    itself is never a candidate. Entries in ``explicit`` are skipped since
    the caller seeds them. Symlinked directories are listed, not followed.
    Any OSError raised while listing a directory aborts the walk.
    """
    explicit = explicit or set()
    candidates: List[str] = []

    for current, dirs, files in os.walk(root, topdown=True, onerror=_raise_walk_error):
        kept_dirs = []
        for name in sorted(dirs):
            path = os.path.join(current, name)
            keep, descend = _classify(
                path,
                to_relative_posix(path, root),
                True,
                include_patterns,
                exclude_patterns,
                explicit,
            )
            if keep:
                candidates.append(path)
            if descend:
                kept_dirs.append(name)
        # Prune in place so os.walk skips excluded subtrees
        dirs[:] = kept_dirs

        for name in sorted(files):
            path = os.path.join(current, name)
            if path in explicit:
                continue
            keep, _ = _classify(
                path,
                to_relative_posix(path, root),
                False,
                include_patterns,
                exclude_patterns,
                explicit,
            )
            if keep:
                candidates.append(path)

    return candidates


def filter_empty_directories(paths: Iterable[str]) -> List[str]:
    """
    Drop directories that do not lead to any file in ``paths``.

    Files are always kept. Paths that cannot be stat'ed are kept and
    treated as files.
    """
    paths = list(paths)
    directories: Set[str] = set()
    has_content: Set[str] = set()

    for path in paths:
        try:
            is_dir = stat.S_ISDIR(os.stat(path).st_mode)
        except OSError as e:
            log.debug(f"Keeping path that cannot be stat'ed: {path} ({e})")
            is_dir = False

        if is_dir:
            directories.add(path)
            continue

        parent = os.path.dirname(path)
        while parent and parent not in has_content:
            has_content.add(parent)
            next_parent = os.path.dirname(parent)
            if next_parent == parent:
                break
            parent = next_parent

    return [path for path in paths if path not in directories or path in has_content]


def select_paths(
    request: SelectionRequest,
    *,
    strict_explicit: bool = True,
    prune_empty_dirs: bool = True,
) -> List[str]:
    """
    Run the whole selection for ``request``.

    Returns absolute paths, explicit files first and then walk order, with
    no duplicates. Raises MissingExplicitFileError (strict mode),
    PatternError for a malformed glob and OSError for filesystem failures;
    nothing is returned partially.
    """
    root = os.path.realpath(request.root)
    if not os.path.isdir(root):
        if os.path.exists(root):
            raise NotADirectoryError(f"Not a directory: {request.root!r}")
        raise FileNotFoundError(f"Directory does not exist: {request.root!r}")

    exclude_patterns = preprocess_exclude_patterns(root, request.exclude_patterns)
    include_patterns = [pattern for pattern in request.include_patterns if pattern]
    for pattern in include_patterns + exclude_patterns:
        compile_pattern(pattern)
    explicit = resolve_explicit_files(request.explicit_files, strict=strict_explicit)

    selected: Dict[str, None] = dict.fromkeys(explicit)
    for path in walk(root, include_patterns, exclude_patterns, set(explicit)):
        selected.setdefault(path, None)

    paths = list(selected)
    if prune_empty_dirs:
        paths = filter_empty_directories(paths)

    log.debug(f"Selected {len(paths)} paths under {root}")
    return paths


def get_all_file_paths(
    root: str,
    include_patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
    explicit_files: Optional[Sequence[str]] = None,
    **policy,
) -> List[str]:
    """Positional shorthand for select_paths(SelectionRequest(...))."""
    request = SelectionRequest(
        root=root,
        include_patterns=tuple(include_patterns or ()),
        exclude_patterns=tuple(exclude_patterns or ()),
        explicit_files=tuple(explicit_files or ()),
    )
    return select_paths(request, **policy)
