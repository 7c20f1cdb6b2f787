"""Read selected paths concurrently and persist the finished bundle."""

import logging
import os
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 100
BINARY_PLACEHOLDER = "[Binary file content not displayed]"
EMPTY_DIRECTORY = "empty directory"


def read_path(path: str) -> Optional[Tuple[str, str]]:
    """
    Read one selected path.

    Returns ``(path, content)``, or None for a directory that has entries.
    Undecodable files get a placeholder instead of their bytes.
    """
    if os.path.isdir(path):
        with os.scandir(path) as entries:
            if any(True for _ in entries):
                return None
        return (path, EMPTY_DIRECTORY)

    log.debug(f"Reading file: {path}")
    try:
        with open(path, "r", encoding="utf-8") as in_f:
            return (path, in_f.read())
    except UnicodeDecodeError:
        log.warning(f"Skipping binary file: {path}")
        return (path, BINARY_PLACEHOLDER)


def get_content_map_of_files(
    paths: Iterable[str],
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    show_progress: bool = False,
    console: Optional[Console] = None,
) -> Dict[str, str]:
    """
    Map every path to its content, reading up to ``max_concurrency`` at once.

    The first failing read cancels the reads that have not started and its
    error is raised; no partial map is returned.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

    paths = list(paths)
    content_map: Dict[str, str] = {}
    if not paths:
        return content_map

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
        disable=not show_progress,
    ) as progress:
        task = progress.add_task("Reading files", total=len(paths))

        with ThreadPoolExecutor(max_workers=max_concurrency) as executor:
            futures = [executor.submit(read_path, path) for path in paths]
            for future in futures:
                future.add_done_callback(lambda _: progress.update(task, advance=1))

            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            failed = [future for future in done if future.exception() is not None]
            if failed:
                for future in pending:
                    future.cancel()
                raise failed[0].exception()

    for future in futures:
        result = future.result()
        if result:
            path, content = result
            content_map[path] = content

    log.debug(f"Read {len(content_map)} of {len(paths)} paths")
    return content_map


def save_string_to_file(content: str, output_file) -> Path:
    """Write ``content`` to ``output_file``, creating parent folders."""
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as out_f:
        out_f.write(content)
    return output_path
