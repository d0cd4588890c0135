"""
Executable lookup and toolchain discovery.

Locates tools on the search path without invoking a shell, and builds a
short status text describing which parts of the toolchain are installed.
"""

from __future__ import annotations

import os
import stat
import sys
from collections.abc import Iterable

# Suffixes tried for each candidate on Windows
WINDOWS_EXTENSIONS: tuple[str, ...] = ("", ".exe", ".cmd", ".bat", ".com")

# Known tools with their descriptions and install hints
KNOWN_TOOLS: dict[str, tuple[str, str]] = {
    "cargo": ("Rust build tool and package manager", "Install Rust: https://rustup.rs/"),
    "rustup": ("Rust toolchain installer", "Install Rust: https://rustup.rs/"),
    "node": ("Node.js runtime", "Install Node.js: https://nodejs.org/"),
    "npm": ("Node.js package manager", "Ships with Node.js"),
    "pnpm": ("Fast Node.js package manager", "npm install -g pnpm"),
    "yarn": ("Node.js package manager", "npm install -g yarn"),
}


def _is_executable(filepath: str) -> bool:
    """Check whether ``filepath`` is a regular file this process may execute."""
    try:
        st = os.stat(filepath)
    except (OSError, ValueError):
        return False

    if not stat.S_ISREG(st.st_mode):
        return False

    # On Windows, existence with an expected suffix is enough
    if sys.platform == "win32":
        return True

    mode = st.st_mode
    if st.st_uid == os.getuid() and mode & stat.S_IXUSR:
        return True
    if st.st_gid == os.getgid() and mode & stat.S_IXGRP:
        return True
    return bool(mode & stat.S_IXOTH)


def which(command: str, *, path: str | None = None) -> str | None:
    """
    Find the absolute path of an executable.

    Args:
        command: Bare executable name or absolute path.
        path: Search path to use instead of the ``PATH`` environment variable.

    Returns:
        The first matching executable, or None if the tool is not installed.
    """
    if os.path.isabs(command) or command.startswith(("/", "\\")):
        return command if _is_executable(command) else None

    search_path = path if path is not None else os.environ.get("PATH", "")
    extensions = WINDOWS_EXTENSIONS if sys.platform == "win32" else ("",)

    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        for ext in extensions:
            candidate = os.path.join(directory, command + ext)
            if _is_executable(candidate):
                return candidate

    return None


def command_exists(command: str) -> bool:
    """Return True if ``command`` resolves to an executable."""
    return which(command) is not None


def discover_tools(tools: Iterable[str] | None = None) -> dict[str, str | None]:
    """
    Look up each known tool on the search path.

    Args:
        tools: Tool names to check. Defaults to every entry in KNOWN_TOOLS.

    Returns:
        Mapping of tool name to resolved path, or None when missing.
    """
    names = list(tools) if tools is not None else list(KNOWN_TOOLS)
    return {name: which(name) for name in names}


def generate_tool_prompt(
    available: dict[str, str | None],
    *,
    extra_instructions: str | None = None,
) -> str:
    """
    Describe the installed toolchain in a few lines.

    Args:
        available: Result of discover_tools().
        extra_instructions: Additional text appended after the status.

    Returns:
        A formatted status string.
    """
    installed = sorted(name for name, location in available.items() if location)
    missing = sorted(name for name, location in available.items() if not location)

    lines: list[str] = []
    if installed:
        lines.append(f"Installed tools: {', '.join(installed)}")
    if missing:
        lines.append(f"Missing tools: {', '.join(missing)}")
        for name in missing:
            if name in KNOWN_TOOLS:
                lines.append(f"  {name}: {KNOWN_TOOLS[name][1]}")
    if "cargo" in installed:
        lines.append("Programs can be compiled and tested with cargo.")

    if extra_instructions:
        lines.append("")
        lines.append(extra_instructions)

    return "\n".join(lines)
