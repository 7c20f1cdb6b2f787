"""Built-in defaults and the optional ``.codebundle.yaml`` config file."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".codebundle.yaml"
DEFAULT_OUTPUT_FILE = "codebundle-project.md"

# Hidden paths (.git, .idea, ...) and the tool's own output
PREFIXES_TO_IGNORE = [
    ".",
    "codebundle",
]

EXTENSIONS_TO_IGNORE = [
    # Images
    ".jpeg",
    ".jpg",
    ".png",
    ".gif",
    ".svg",
    ".ico",
    # Documents
    ".pdf",
    # Fonts
    ".woff",
    ".woff2",
    ".eot",
    ".ttf",
    ".otf",
]

FILES_TO_IGNORE = [
    "Thumbs.db",
    "poetry.lock",
    "go.mod",
    "go.sum",
]

LIST_KEYS = ("include", "exclude", "files")
SCALAR_KEYS = {"output": str, "max_concurrency": int}

DEFAULT_CONFIG = """\
# Configuration for codebundle

# Glob patterns for files and directories to include (default is all files)
include:
  - "**/*"

# Glob patterns for files and directories to exclude
exclude:
  # Generic exclude patterns
  - ".git/**"
  - ".idea/**"
  - ".vscode/**"
  - "build/**"
  - "dist/**"
  - "out/**"
  - "target/**"
  - "bin/**"
  - "node_modules/**"
  - "coverage/**"
  - "vendor/**"
  - "logs/**"

  # Language-specific exclude patterns
  - "**/*.pyc"
  - "**/__pycache__/**"
  - "**/*.class"
  - "**/*.o"
  - "**/*.so"
  - "**/*.dll"
  - "**/*.exe"
  - "**/*.jar"

  # Other generic patterns
  - "**/*.lock"
  - "**/*.log"
  - "**/*.tmp"
  - "**/*.bak"
  - "**/*.swp"

# Files that are always bundled, even when an exclude pattern matches them
files: []

# Example:
# include:
#   - "src/**"
#   - "**/*.py"
# exclude:
#   - "vendor/**"
#   - "**/test_*.py"
"""


def default_exclude_patterns() -> List[str]:
    patterns = []
    for prefix in PREFIXES_TO_IGNORE:
        patterns.extend([f"**/{prefix}*", f"{prefix}*"])
    for extension in EXTENSIONS_TO_IGNORE:
        patterns.append(f"**/*{extension}")
    for filename in FILES_TO_IGNORE:
        patterns.append(f"**/{filename}")
    return patterns


def append_default_excludes(patterns: List[str]) -> List[str]:
    """Return ``patterns`` followed by the built-in exclude patterns."""
    return list(patterns) + default_exclude_patterns()


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load and validate the YAML config file.

    Without ``path`` the default file in the working directory is tried and
    a missing file yields an empty config. Raises ConfigError for
    unreadable files, invalid YAML or values of the wrong type.
    """
    config_path = Path(path) if path else Path(CONFIG_FILE_NAME)
    if not config_path.is_file():
        if path:
            raise ConfigError(f"Config file not found: {config_path}")
        log.debug(f"No config file at {config_path}")
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as config_file:
            data = yaml.safe_load(config_file)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read config file {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    config: Dict[str, Any] = {}
    for key, value in data.items():
        if key in LIST_KEYS:
            if value is None:
                value = []
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"'{key}' in {config_path} must be a list of strings")
            config[key] = value
        elif key in SCALAR_KEYS:
            expected = SCALAR_KEYS[key]
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ConfigError(
                    f"'{key}' in {config_path} must be of type {expected.__name__}"
                )
            config[key] = value
        else:
            log.warning(f"Ignoring unknown key '{key}' in {config_path}")

    log.info(f"Using config file: {config_path}")
    return config


def write_default_config(path: Optional[Path] = None, force: bool = False) -> Path:
    """Create the default config file; refuses to overwrite unless ``force``."""
    config_path = Path(path) if path else Path(CONFIG_FILE_NAME)
    if config_path.exists() and not force:
        raise ConfigError(f"Config file already exists at {config_path}")
    with open(config_path, "w", encoding="utf-8") as config_file:
        config_file.write(DEFAULT_CONFIG)
    return config_path
