import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .bundle import BundleOptions, bundle
from .config import CONFIG_FILE_NAME, DEFAULT_OUTPUT_FILE, load_config, write_default_config
from .errors import BundleError
from .patterns import split_outside_braces
from .reading import DEFAULT_MAX_CONCURRENCY

log = logging.getLogger("codebundle")
console = Console()


def configure_logging(verbose: bool = False):
    """Route log records through rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    if verbose:
        log.debug("Verbose logging enabled.")


def comma_list(value: str) -> List[str]:
    """Split ``a,b,c`` flag values, keeping ``{a,b}`` groups whole; blanks are dropped."""
    return [item.strip() for item in split_outside_braces(value) if item.strip()]


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"'{value}' is not an integer.")
    if number < 1:
        raise argparse.ArgumentTypeError(f"'{value}' must be at least 1.")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codebundle",
        description="Bundle a codebase into a single file for review by an LLM.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    bundle_epilog = """
    Files matching any exclude pattern are left out even when an include
    pattern matches them. Files given with -f/--files are always bundled.

    Examples:
    $ codebundle bundle
    $ codebundle bundle /path/to/project
    $ codebundle bundle --exclude '*.md' --exclude 'test/**'
    $ codebundle bundle --include 'src/**' --exclude 'src/vendor/**'
    $ codebundle bundle -f main.py,setup.cfg,docs/notes.md
    """
    bundle_parser = subparsers.add_parser(
        "bundle",
        help="Bundle your project into a single file.",
        description="Bundle your project into a single file, starting from PATH.",
        epilog=bundle_epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    bundle_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory to bundle (default: current directory).",
    )

    select_group = bundle_parser.add_argument_group("File Selection")
    select_group.add_argument(
        "-f",
        "--files",
        type=comma_list,
        action="extend",
        default=None,
        help="Files to always include, overriding exclude patterns (repeatable, comma-separated).",
        metavar="FILE",
    )
    select_group.add_argument(
        "-I",
        "--include",
        type=comma_list,
        action="extend",
        default=None,
        help="Include paths matching these glob patterns (e.g. 'src/**', '**/*.py').",
        metavar="PATTERN",
    )
    select_group.add_argument(
        "-E",
        "--exclude",
        type=comma_list,
        action="extend",
        default=None,
        help="Exclude paths matching these glob patterns (e.g. 'vendor/**', '**/*.log').",
        metavar="PATTERN",
    )
    select_group.add_argument(
        "--no-default-excludes",
        action="store_true",
        help="Do not add the built-in excludes (hidden paths, images, fonts, lock files).",
    )
    select_group.add_argument(
        "--ignore-missing-files",
        action="store_true",
        help="Skip --files entries that do not exist instead of failing.",
    )
    select_group.add_argument(
        "--keep-empty-dirs",
        action="store_true",
        help="Keep directories with no selected files in the tree.",
    )

    behavior_group = bundle_parser.add_argument_group("Output and Behavior")
    behavior_group.add_argument(
        "-o",
        "--output",
        default=None,
        help=f"Output file (default: {DEFAULT_OUTPUT_FILE}).",
        metavar="FILE",
    )
    behavior_group.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Config file to read (default: {CONFIG_FILE_NAME} if present).",
        metavar="FILE",
    )
    behavior_group.add_argument(
        "--max-concurrency",
        type=positive_int,
        default=None,
        help=f"Maximum number of files read at once (default: {DEFAULT_MAX_CONCURRENCY}).",
        metavar="N",
    )
    behavior_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    init_parser = subparsers.add_parser(
        "init",
        help=f"Write a default {CONFIG_FILE_NAME} in the current directory.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    return parser


def options_from_args(args: argparse.Namespace) -> BundleOptions:
    """Merge flags over config file values over built-in defaults."""
    config = load_config(args.config)

    def pick(flag_value, key, default):
        if flag_value is not None:
            return flag_value
        return config.get(key, default)

    return BundleOptions(
        root_dir=args.path,
        explicit_files=pick(args.files, "files", []),
        include_patterns=pick(args.include, "include", []),
        exclude_patterns=pick(args.exclude, "exclude", []),
        output_file=pick(args.output, "output", DEFAULT_OUTPUT_FILE),
        max_concurrency=pick(args.max_concurrency, "max_concurrency", DEFAULT_MAX_CONCURRENCY),
        use_default_excludes=not args.no_default_excludes,
        ignore_missing_files=args.ignore_missing_files,
        keep_empty_dirs=args.keep_empty_dirs,
        show_progress=console.is_terminal,
    )


def run_bundle(args: argparse.Namespace) -> int:
    options = options_from_args(args)
    console.print("[bold blue]Starting codebase bundle[/]")
    if options.include_patterns:
        console.print(f"Including patterns: [green]{', '.join(options.include_patterns)}[/]")
    if options.exclude_patterns:
        console.print(f"Excluding patterns: [yellow]{', '.join(options.exclude_patterns)}[/]")
    if options.explicit_files:
        console.print(f"Always including: [green]{', '.join(options.explicit_files)}[/]")

    output_file = bundle(options, console=console)
    console.print(f"[bold green]✓[/] Bundle written to [blue]{output_file}[/]")
    return 0


def run_init(args: argparse.Namespace) -> int:
    config_path = write_default_config(force=args.force)
    console.print(f"Config file created at: [green]{config_path}[/]")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(getattr(args, "verbose", False))

    try:
        if args.command == "init":
            return run_init(args)
        return run_bundle(args)
    except BundleError as e:
        log.error(str(e))
        return 1
    except OSError as e:
        log.error(f"Filesystem error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
