"""
Workspace path containment.

Every path a toolchain operation writes to, or uses as a working directory,
is resolved here first. Resolution is lexical: ``.`` and ``..`` segments and
redundant separators are collapsed, but symbolic links on disk are not
followed.
"""

from __future__ import annotations

import os

from varakit.errors import PathViolationError


def _canonical(path: str) -> str:
    canonical = os.path.normpath(os.path.abspath(path))
    # POSIX normpath keeps exactly two leading slashes
    if os.sep == "/" and canonical.startswith("//"):
        canonical = "/" + canonical.lstrip("/")
    return canonical


def assert_within_root(root: str, target_path: str) -> None:
    """
    Assert that ``target_path`` is ``root`` itself or nested under it.

    Both a relative-segment test and a string-prefix test must pass.

    Raises:
        PathViolationError: If the target lies outside the root.
    """
    normalized_root = _canonical(root)
    normalized_target = _canonical(target_path)

    try:
        relative = os.path.relpath(normalized_target, normalized_root)
    except ValueError:
        # Different drives on Windows
        raise PathViolationError(target_path, root) from None

    first_segment = relative.replace("\\", "/").split("/", 1)[0]
    if first_segment == os.pardir or os.path.isabs(relative):
        raise PathViolationError(target_path, root)

    root_prefix = normalized_root if normalized_root.endswith(os.sep) else normalized_root + os.sep
    if normalized_target != normalized_root and not normalized_target.startswith(root_prefix):
        raise PathViolationError(target_path, root)


def is_within_root(root: str, target_path: str) -> bool:
    """Return True if ``target_path`` is contained in ``root``."""
    try:
        assert_within_root(root, target_path)
    except PathViolationError:
        return False
    return True


def resolve_within_root(root: str, input_path: str) -> str:
    """
    Resolve a caller-supplied path inside ``root``.

    Relative paths are joined under the root. Absolute paths are accepted
    only if they already lie inside it. An empty path resolves to the root.

    Args:
        root: The sandbox root directory.
        input_path: Relative or absolute path to resolve.

    Returns:
        The normalized absolute path.

    Raises:
        PathViolationError: If the resolved path escapes the root.
    """
    normalized_root = _canonical(root)

    if os.path.isabs(input_path):
        resolved = _canonical(input_path)
    else:
        resolved = os.path.normpath(os.path.join(normalized_root, input_path))

    assert_within_root(normalized_root, resolved)
    return resolved


def ensure_directory_within_root(root: str, dir_path: str) -> str:
    """
    Resolve ``dir_path`` inside ``root`` and create it if missing.

    Returns:
        The resolved absolute directory path.

    Raises:
        PathViolationError: If the path escapes the root.
        NotADirectoryError: If the path exists and is not a directory.
    """
    resolved = resolve_within_root(root, dir_path)

    if not os.path.exists(resolved):
        os.makedirs(resolved, exist_ok=True)
    elif not os.path.isdir(resolved):
        raise NotADirectoryError(f"Path exists but is not a directory: {resolved}")

    return resolved


def safe_path(root: str, *segments: str) -> str | None:
    """
    Join ``segments`` with ``/`` and resolve them inside ``root``.

    Returns None instead of raising when the result would escape the root.
    """
    try:
        return resolve_within_root(root, "/".join(segments))
    except PathViolationError:
        return None


def join_safe(*segments: str) -> str:
    """Join ``segments`` with ``/`` and normalize. Performs no containment check."""
    return os.path.normpath("/".join(segments))
