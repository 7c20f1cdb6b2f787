"""Bundle a directory into a single Markdown file."""

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from rich.console import Console

from .config import DEFAULT_OUTPUT_FILE, append_default_excludes
from .errors import BundleError, NoFilesFoundError
from .formatting import create_project_string, display_path, generate_path_tree, is_under
from .reading import DEFAULT_MAX_CONCURRENCY, get_content_map_of_files, save_string_to_file
from .selection import SelectionRequest, select_paths

log = logging.getLogger(__name__)


@dataclass
class BundleOptions:
    root_dir: str = "."
    explicit_files: List[str] = field(default_factory=list)
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    output_file: str = DEFAULT_OUTPUT_FILE
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    use_default_excludes: bool = True
    ignore_missing_files: bool = False
    keep_empty_dirs: bool = False
    show_progress: bool = False


def estimate_tokens(text: str):
    """Rough (low, high) token estimate for a bundle."""
    return len(text) // 4, len(text) // 3


def _output_exclude(root: Path, output_file: Path) -> Optional[str]:
    try:
        return output_file.relative_to(root).as_posix()
    except ValueError:
        return None


def bundle(options: BundleOptions, console: Optional[Console] = None) -> Path:
    """
    Select, read and write the bundle described by ``options``.

    Returns the path of the written file. Raises BundleError subclasses for
    user-facing problems and OSError for filesystem failures.
    """
    start = time.perf_counter()
    log.info(f"Starting bundle operation in directory: {options.root_dir}")

    root = Path(os.path.realpath(options.root_dir))
    if not root.exists():
        raise BundleError(f"directory {str(root)!r} does not exist")
    if not root.is_dir():
        raise BundleError(f"{str(root)!r} is not a directory")

    output_file = Path(os.path.realpath(options.output_file))

    exclude_patterns = list(options.exclude_patterns)
    if options.use_default_excludes:
        exclude_patterns = append_default_excludes(exclude_patterns)
    output_exclude = _output_exclude(root, output_file)
    if output_exclude:
        exclude_patterns.append(output_exclude)

    log.debug(f"Files: {options.explicit_files}")
    log.debug(f"Includes: {options.include_patterns}")
    log.debug(f"Excludes: {exclude_patterns}")

    request = SelectionRequest(
        root=str(root),
        include_patterns=tuple(options.include_patterns),
        exclude_patterns=tuple(exclude_patterns),
        explicit_files=tuple(options.explicit_files),
    )
    file_paths = select_paths(
        request,
        strict_explicit=not options.ignore_missing_files,
        prune_empty_dirs=not options.keep_empty_dirs,
    )
    if not file_paths:
        raise NoFilesFoundError()
    log.info(f"Found {len(file_paths)} paths matching criteria.")

    external_paths = [path for path in file_paths if not is_under(path, str(root))]
    if external_paths:
        log.debug(f"Listing {len(external_paths)} files outside {root} separately")
    project_tree = generate_path_tree(
        display_path(path, str(root)) for path in file_paths if is_under(path, str(root))
    )
    content_map = get_content_map_of_files(
        file_paths,
        max_concurrency=options.max_concurrency,
        show_progress=options.show_progress,
        console=console,
    )
    project_string = create_project_string(
        project_tree, content_map, root=str(root), external_paths=external_paths
    )
    save_string_to_file(project_string, output_file)

    low, high = estimate_tokens(project_string)
    log.info(f"Project overview successfully saved to: {output_file}")
    log.info(f"Estimated token count: {low} - {high} tokens")
    log.info(f"Execution time: {time.perf_counter() - start:.2f}s")
    return output_file
