"""
Glob matching against root-relative paths.

Patterns follow the doublestar dialect and are anchored at the selection
root: ``*`` and ``?`` stay inside one path segment, ``**`` spans any number
of segments, ``[...]`` is a character class and ``{a,b}`` picks between
alternatives. A pattern has to match the whole path. ``dir/**`` matches
``dir`` as well as everything beneath it.

Segment globs are translated by pathspec's gitignore pattern compiler; the
descendant clause gitignore adds to every pattern is cut off so that a
match on a directory does not spill over into its contents.
"""

import logging
import os
import re
from functools import lru_cache
from typing import Iterable, List

import pathspec

from .errors import PatternError

log = logging.getLogger(__name__)

SEPARATORS = "/\\"

GITIGNORE_PATTERN = pathspec.util.lookup_pattern("gitignore")

# gitignore regex endings that also accept paths below the matched one
_DESCENDANT_TAILS = ("(?:/|$)", "/?$")


def split_outside_braces(body: str) -> List[str]:
    """Split on commas that are not inside a ``{...}`` group."""
    parts = []
    depth = 0
    escaped = False
    start = 0
    for i, char in enumerate(body):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}" and depth:
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    parts.append(body[start:])
    return parts


def expand_braces(pattern: str) -> List[str]:
    """
    Expand ``{a,b}`` groups into one pattern per alternative.

    ``**/*.{go,md}`` becomes ``["**/*.go", "**/*.md"]``. Groups may nest.
    Raises PatternError for an unclosed ``{``.
    """
    depth = 0
    escaped = False
    start = 0
    for i, char in enumerate(pattern):
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth:
            depth -= 1
            if depth == 0:
                prefix, suffix = pattern[:start], pattern[i + 1:]
                expanded: List[str] = []
                for option in split_outside_braces(pattern[start + 1:i]):
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
    if depth:
        raise PatternError(pattern, "unclosed '{'")
    return [pattern]


def _check_brackets(pattern: str, glob: str):
    """Raise PatternError for ``pattern`` when ``glob`` leaves a ``[`` unclosed."""
    i, end = 0, len(glob)
    while i < end:
        char = glob[i]
        i += 1
        if char == "\\":
            i += 1
        elif char == "[":
            j = i
            if j < end and glob[j] in "!^":
                j += 1
            if j < end and glob[j] == "]":
                j += 1
            while j < end and glob[j] not in "]/":
                j += 1
            if j >= end or glob[j] != "]":
                raise PatternError(pattern, "unclosed '['")
            i = j + 1


def _whole_path_regex(glob: str) -> str:
    anchored = glob if glob.startswith("/") else "/" + glob
    subtree = anchored.endswith("/**") and len(anchored) > 3
    if subtree:
        anchored = anchored[:-3]

    regex, _ = GITIGNORE_PATTERN.pattern_to_regex(anchored)
    for tail in _DESCENDANT_TAILS:
        if regex.endswith(tail):
            regex = regex[: -len(tail)] + ("(?:/.*)?$" if subtree else "$")
            break
    return regex


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a single glob into a regex matching whole root-relative paths."""
    try:
        alternatives = expand_braces(pattern)
    except PatternError as e:
        raise PatternError(pattern, "unclosed '{'") from e
    for alternative in alternatives:
        _check_brackets(pattern, alternative)
    try:
        regexes = [_whole_path_regex(alternative) for alternative in alternatives]
        return re.compile("|".join(f"(?:{regex})" for regex in regexes))
    except (ValueError, re.error) as e:
        raise PatternError(pattern, str(e)) from e


def path_matches(pattern: str, relative_path: str) -> bool:
    """
    Report whether a forward-slash relative path matches a glob pattern.

    Empty patterns never match. Raises PatternError for a malformed pattern.
    """
    if not pattern:
        return False
    return compile_pattern(pattern).match(relative_path) is not None


def matches_any(patterns: Iterable[str], relative_path: str) -> bool:
    return any(path_matches(pattern, relative_path) for pattern in patterns)


def to_relative_posix(path: str, root: str) -> str:
    """Path of ``path`` relative to ``root`` with forward slashes."""
    return os.path.relpath(path, root).replace(os.sep, "/")


def preprocess_exclude_patterns(root: str, exclude_patterns: Iterable[str]) -> List[str]:
    """
    Expand exclude patterns so a directory name also covers its contents.

    Trailing separators are trimmed. When ``root/pattern`` is an existing
    directory both ``pattern`` and ``pattern/**`` are emitted, otherwise the
    trimmed pattern is emitted as-is (globs, files, and paths that do not
    exist yet). Empty patterns are dropped.
    """
    processed: List[str] = []
    for pattern in exclude_patterns:
        if not pattern:
            continue
        clean = pattern.rstrip(SEPARATORS)
        if not clean:
            log.debug(f"Ignoring exclude pattern {pattern!r}: nothing left after trimming")
            continue

        if os.path.isdir(os.path.join(root, clean.lstrip(SEPARATORS))):
            processed.extend([clean, clean + "/**"])
        else:
            processed.append(clean)

    log.debug(f"Effective exclude patterns: {processed}")
    return processed
