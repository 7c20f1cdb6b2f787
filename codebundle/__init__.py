"""Bundle a codebase into one file for pasting into an LLM prompt."""

__version__ = "0.3.2"

from .errors import (
    BundleError,
    ConfigError,
    MissingExplicitFileError,
    NoFilesFoundError,
    PatternError,
)
from .selection import SelectionRequest, get_all_file_paths, select_paths

__all__ = [
    "BundleError",
    "ConfigError",
    "MissingExplicitFileError",
    "NoFilesFoundError",
    "PatternError",
    "SelectionRequest",
    "get_all_file_paths",
    "select_paths",
]
