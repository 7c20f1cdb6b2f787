"""Exceptions raised while selecting and bundling files."""


class BundleError(Exception):
    """Base class for every error the tool reports to the user."""


class PatternError(BundleError):
    """A glob pattern was rejected by the matcher."""

    def __init__(self, pattern: str, reason: str = ""):
        self.pattern = pattern
        message = f"Invalid glob pattern {pattern!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MissingExplicitFileError(BundleError):
    """One or more files passed with --files do not exist."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(
            "the following files specified via --files do not exist: "
            + ", ".join(self.missing)
        )


class ConfigError(BundleError):
    """The config file could not be read or has the wrong shape."""


class NoFilesFoundError(BundleError):
    """Selection finished without a single path to bundle."""

    def __init__(self):
        super().__init__(
            "no files found to bundle. Please check your include/exclude "
            "patterns and the specified path"
        )
