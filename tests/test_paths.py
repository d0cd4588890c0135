"""Tests for workspace path containment."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from varakit.errors import PathViolationError, SecurityError
from varakit.security.paths import (
    assert_within_root,
    ensure_directory_within_root,
    is_within_root,
    join_safe,
    resolve_within_root,
    safe_path,
)

ROOT = os.path.abspath(os.path.join(os.sep, "home", "user", "project"))


def under_root(*parts: str) -> str:
    return os.path.normpath(os.path.join(ROOT, *parts))


class TestResolveWithinRoot:
    """Tests for resolve_within_root."""

    @pytest.mark.parametrize(
        ("input_path", "expected"),
        [
            ("src/lib.rs", under_root("src", "lib.rs")),
            ("src/nested/deep/file.rs", under_root("src", "nested", "deep", "file.rs")),
            ("./src/lib.rs", under_root("src", "lib.rs")),
            ("src//lib.rs", under_root("src", "lib.rs")),
            ("src/./lib.rs", under_root("src", "lib.rs")),
            ("src/../Cargo.toml", under_root("Cargo.toml")),
            ("path with spaces/file.rs", under_root("path with spaces", "file.rs")),
            ("src/file.test.rs", under_root("src", "file.test.rs")),
            ("~/something", under_root("~", "something")),
            ("..cache/data", under_root("..cache", "data")),
            ("", ROOT),
            (".", ROOT),
        ],
    )
    def test_resolves_inside_root(self, input_path: str, expected: str) -> None:
        """Paths that stay inside the root resolve to absolute paths."""
        assert resolve_within_root(ROOT, input_path) == expected

    def test_absolute_path_inside_root(self) -> None:
        """An absolute path already inside the root is accepted as is."""
        absolute = under_root("src", "lib.rs")
        assert resolve_within_root(ROOT, absolute) == absolute

    def test_root_itself(self) -> None:
        """The root is contained in itself."""
        assert resolve_within_root(ROOT, ROOT) == ROOT

    @pytest.mark.parametrize(
        "input_path",
        [
            "..",
            "../",
            "src/../../..",
            "src/../../../etc/passwd",
            "a/b/../../../sibling",
            os.path.abspath(os.path.join(os.sep, "etc", "passwd")),
            os.path.abspath(os.sep),
            ROOT + "2",
            ROOT + "-evil/file",
        ],
    )
    def test_blocks_escape(self, input_path: str) -> None:
        """Paths resolving above or beside the root are rejected."""
        with pytest.raises(PathViolationError):
            resolve_within_root(ROOT, input_path)

    def test_scenario_traversal_from_subdirectory(self) -> None:
        """src/../../etc/passwd under /work/proj escapes the root."""
        root = os.path.abspath(os.path.join(os.sep, "work", "proj"))
        with pytest.raises(PathViolationError) as exc_info:
            resolve_within_root(root, "src/../../etc/passwd")
        assert exc_info.value.requested_path.endswith("passwd")
        assert exc_info.value.root_path == root

    def test_violation_is_security_error(self) -> None:
        """PathViolationError belongs to the SecurityError family."""
        with pytest.raises(SecurityError):
            resolve_within_root(ROOT, "../outside")

    def test_idempotent(self) -> None:
        """Resolving the same input twice yields the same path."""
        first = resolve_within_root(ROOT, "src/./a/../lib.rs")
        assert resolve_within_root(ROOT, "src/./a/../lib.rs") == first
        assert resolve_within_root(ROOT, first) == first

    @pytest.mark.skipif(sys.platform == "win32", reason="leading double separator is a UNC prefix on Windows")
    def test_doubled_leading_separator(self) -> None:
        """Redundant leading separators collapse for absolute inputs."""
        doubled = "/" + under_root("src", "lib.rs")
        assert resolve_within_root(ROOT, doubled) == under_root("src", "lib.rs")
        assert is_within_root(ROOT, doubled)
        assert resolve_within_root("/" + ROOT, "src") == under_root("src")

    def test_root_with_trailing_separator(self) -> None:
        """A trailing separator on the root does not change the result."""
        assert resolve_within_root(ROOT + os.sep, "src") == under_root("src")

    def test_relative_root(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A relative root is interpreted against the current directory."""
        monkeypatch.chdir(temp_dir)
        expected = os.path.join(os.path.abspath("ws"), "src")
        assert resolve_within_root("ws", "src") == expected


class TestAssertWithinRoot:
    """Tests for assert_within_root and is_within_root."""

    def test_valid_path(self) -> None:
        """A nested path does not raise."""
        assert_within_root(ROOT, under_root("src", "lib.rs"))

    def test_outside_root(self) -> None:
        """A path outside the root raises."""
        with pytest.raises(PathViolationError):
            assert_within_root(ROOT, os.path.abspath(os.path.join(os.sep, "etc", "passwd")))

    def test_parent_directory(self) -> None:
        """The root's parent is outside the root."""
        with pytest.raises(PathViolationError):
            assert_within_root(ROOT, os.path.dirname(ROOT))

    def test_sibling_with_shared_prefix(self) -> None:
        """A sibling whose name starts with the root's name is outside."""
        with pytest.raises(PathViolationError):
            assert_within_root(ROOT, ROOT + "2")

    def test_is_within_root(self) -> None:
        """is_within_root mirrors assert_within_root without raising."""
        assert is_within_root(ROOT, under_root("src", "lib.rs"))
        assert is_within_root(ROOT, ROOT)
        assert not is_within_root(ROOT, os.path.dirname(ROOT))
        assert not is_within_root(ROOT, os.path.abspath(os.sep))
        assert not is_within_root(ROOT, ROOT + "2")

    def test_filesystem_root_contains_everything(self) -> None:
        """With the filesystem root as sandbox, every absolute path is inside."""
        fs_root = os.path.abspath(os.sep)
        assert is_within_root(fs_root, os.path.abspath(os.path.join(os.sep, "etc", "passwd")))


class TestSafePath:
    """Tests for safe_path."""

    def test_valid_segments(self) -> None:
        """Segments are joined and resolved."""
        assert safe_path(ROOT, "src", "lib.rs") == under_root("src", "lib.rs")

    def test_single_segment(self) -> None:
        """A single segment resolves directly under the root."""
        assert safe_path(ROOT, "Cargo.toml") == under_root("Cargo.toml")

    def test_no_segments(self) -> None:
        """No segments resolve to the root."""
        assert safe_path(ROOT) == ROOT

    def test_escape_returns_none(self) -> None:
        """An escaping path yields None instead of raising."""
        assert safe_path(ROOT, "..", "..", "etc", "passwd") is None

    @pytest.mark.parametrize(
        "segments",
        [
            ("src", "lib.rs"),
            ("..",),
            ("a", "..", "..", "b"),
            ("",),
            (os.path.abspath(os.sep),),
            ("src", "..", "Cargo.toml"),
        ],
    )
    def test_none_exactly_when_resolve_raises(self, segments: tuple[str, ...]) -> None:
        """safe_path returns None exactly when resolve_within_root would raise."""
        joined = "/".join(segments)
        try:
            expected: str | None = resolve_within_root(ROOT, joined)
        except PathViolationError:
            expected = None
        assert safe_path(ROOT, *segments) == expected


class TestJoinSafe:
    """Tests for join_safe."""

    def test_normalizes(self) -> None:
        """Segments are joined and normalized."""
        assert join_safe("src", ".", "lib.rs") == os.path.normpath("src/lib.rs")
        assert join_safe("a", "b", "..", "c") == os.path.normpath("a/c")


class TestEnsureDirectoryWithinRoot:
    """Tests for ensure_directory_within_root against a real filesystem."""

    def test_creates_nested_directories(self, temp_dir: Path) -> None:
        """Missing directories are created."""
        created = ensure_directory_within_root(str(temp_dir), "a/b/c")
        assert os.path.isdir(created)
        assert created == os.path.join(str(temp_dir), "a", "b", "c")

    def test_existing_directory(self, temp_dir: Path) -> None:
        """An existing directory is returned unchanged."""
        (temp_dir / "existing").mkdir()
        assert ensure_directory_within_root(str(temp_dir), "existing") == str(temp_dir / "existing")

    def test_existing_file_rejected(self, temp_dir: Path) -> None:
        """A file in the way is reported as not a directory."""
        (temp_dir / "file.txt").write_text("x")
        with pytest.raises(NotADirectoryError):
            ensure_directory_within_root(str(temp_dir), "file.txt")

    def test_escape_creates_nothing(self, temp_dir: Path) -> None:
        """An escaping path is rejected before anything is created."""
        root = temp_dir / "root"
        root.mkdir()
        with pytest.raises(PathViolationError):
            ensure_directory_within_root(str(root), "../escaped")
        assert not (temp_dir / "escaped").exists()

    def test_root_itself(self, temp_dir: Path) -> None:
        """An empty path ensures the root."""
        root = temp_dir / "new-root"
        assert ensure_directory_within_root(str(root), "") == str(root)
        assert root.is_dir()


@pytest.mark.skipif(sys.platform == "win32", reason="symlink creation needs privileges on Windows")
class TestSymlinks:
    """Containment is lexical; on-disk links are not followed."""

    def test_symlink_inside_root_is_not_followed(self, temp_dir: Path) -> None:
        """A link inside the root pointing outside still resolves lexically inside."""
        root = temp_dir / "root"
        outside = temp_dir / "outside"
        root.mkdir()
        outside.mkdir()
        (root / "link").symlink_to(outside, target_is_directory=True)

        resolved = resolve_within_root(str(root), "link/secret.txt")
        assert resolved == os.path.join(str(root), "link", "secret.txt")
