"""
Tests for the bundle operation: selection, reading, formatting and saving.
"""

import logging

import pytest

from codebundle.bundle import BundleOptions, bundle, estimate_tokens
from codebundle.errors import BundleError, MissingExplicitFileError, NoFilesFoundError

PROJECT = {
    "include.go": "package main",
    "main.go": "package main",
    "internal/files/reading.go": "package files",
    "internal/formatting/format.go": "package formatting",
    "README.md": "# Readme",
    "logo.png": b"\x89PNG\r\n",
    ".git/config": "[core]",
}


@pytest.fixture
def output(tmp_path):
    return tmp_path / "out" / "bundle.md"


class TestBundle:
    """Running a full bundle into a Markdown file."""

    def test_basic_bundle(self, root, make_tree, output) -> None:
        make_tree(PROJECT)

        written = bundle(BundleOptions(root_dir=str(root), output_file=str(output)))

        content = written.read_text(encoding="utf-8")
        assert "## `include.go`" in content
        assert "## `main.go`" in content
        assert "## `internal/files/reading.go`" in content
        assert "## `internal/formatting/format.go`" in content
        assert "├── internal" in content

    def test_default_excludes_apply(self, root, make_tree, output) -> None:
        make_tree(PROJECT)

        content = bundle(BundleOptions(root_dir=str(root), output_file=str(output))).read_text()

        assert ".git" not in content
        assert "logo.png" not in content

    def test_default_excludes_can_be_disabled(self, root, make_tree, output) -> None:
        make_tree(PROJECT)

        options = BundleOptions(root_dir=str(root), output_file=str(output), use_default_excludes=False)
        content = bundle(options).read_text()

        assert "## `.git/config`" in content
        assert "## `logo.png`" in content

    def test_user_excludes_and_explicit_files(self, root, make_tree, output) -> None:
        make_tree(PROJECT)

        options = BundleOptions(
            root_dir=str(root),
            output_file=str(output),
            exclude_patterns=["**/*.md", "internal/"],
            explicit_files=[str(root / "internal/files/reading.go")],
        )
        content = bundle(options).read_text()

        assert "README.md" not in content
        assert "internal/formatting" not in content
        assert "## `internal/files/reading.go`" in content

    def test_include_patterns(self, root, make_tree, output) -> None:
        make_tree(PROJECT)

        options = BundleOptions(root_dir=str(root), output_file=str(output), include_patterns=["internal/**"])
        content = bundle(options).read_text()

        assert "## `internal/files/reading.go`" in content
        assert "main.go" not in content

    def test_output_inside_root_is_not_bundled(self, root, make_tree) -> None:
        make_tree({"main.go": "package main"})
        options = BundleOptions(root_dir=str(root), output_file=str(root / "snapshot.md"))

        bundle(options)
        content = bundle(options).read_text()

        assert "snapshot.md" not in content
        assert "## `main.go`" in content

    def test_keep_empty_dirs(self, root, make_tree, output) -> None:
        make_tree({"main.go": "package main", "empty/": None})

        options = BundleOptions(root_dir=str(root), output_file=str(output), keep_empty_dirs=True)
        content = bundle(options).read_text()

        assert "└── empty" in content or "├── empty" in content
        assert "## `empty`" in content

    def test_explicit_file_outside_root_is_listed_apart(self, root, make_tree, tmp_path, output) -> None:
        """Files outside the root get their own heading, not a '/' branch in the tree."""
        make_tree({"main.go": "package main"})
        outside = tmp_path / "notes.txt"
        outside.write_text("shared notes")

        options = BundleOptions(root_dir=str(root), output_file=str(output), explicit_files=[str(outside)])
        content = bundle(options).read_text()

        tree = content.split("## File and Folder Structure")[1].split("---")[0]
        assert "── /" not in tree
        assert "## Files Outside the Project Root" in content
        assert "shared notes" in content

    def test_logs_summary(self, root, make_tree, output, caplog) -> None:
        make_tree(PROJECT)

        with caplog.at_level(logging.INFO, logger="codebundle"):
            bundle(BundleOptions(root_dir=str(root), output_file=str(output)))

        assert "Project overview successfully saved to:" in caplog.text
        assert "Estimated token count:" in caplog.text


class TestBundleErrors:
    """User-facing failures."""

    def test_no_files_found(self, root, make_tree, output) -> None:
        make_tree({"exclude.md": "# Exclude", ".git/config": "[core]"})

        with pytest.raises(NoFilesFoundError) as excinfo:
            bundle(BundleOptions(root_dir=str(root), output_file=str(output), exclude_patterns=["**/*"]))

        assert "no files found to bundle" in str(excinfo.value)
        assert not output.exists()

    def test_missing_root(self, tmp_path, output) -> None:
        with pytest.raises(BundleError, match="does not exist"):
            bundle(BundleOptions(root_dir=str(tmp_path / "non_existent_dir"), output_file=str(output)))

    def test_root_is_a_file(self, root, make_tree, output) -> None:
        make_tree({"main.go": "package main"})

        with pytest.raises(BundleError, match="not a directory"):
            bundle(BundleOptions(root_dir=str(root / "main.go"), output_file=str(output)))

    def test_missing_explicit_file(self, root, make_tree, output) -> None:
        make_tree({"main.go": "package main"})

        with pytest.raises(MissingExplicitFileError):
            bundle(
                BundleOptions(
                    root_dir=str(root),
                    output_file=str(output),
                    explicit_files=[str(root / "nonexistent.go")],
                )
            )

    def test_missing_explicit_file_ignored(self, root, make_tree, output) -> None:
        make_tree({"main.go": "package main"})

        options = BundleOptions(
            root_dir=str(root),
            output_file=str(output),
            explicit_files=[str(root / "nonexistent.go")],
            ignore_missing_files=True,
        )

        assert "## `main.go`" in bundle(options).read_text()


def test_estimate_tokens() -> None:
    assert estimate_tokens("x" * 120) == (30, 40)
