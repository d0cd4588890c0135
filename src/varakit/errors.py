"""
Exception hierarchy for varakit.

Only policy violations are exceptions. Operational failures of a spawned
tool (missing binary, bad working directory, timeout, non-zero exit) are
reported through ExecutionResult instead.
"""

from __future__ import annotations

from collections.abc import Sequence


class VarakitError(Exception):
    """Base class for all varakit errors."""


class SecurityError(VarakitError):
    """
    Raised when a request must not proceed.

    Always raised before any process is spawned or any file is written.
    """


class PathViolationError(SecurityError):
    """
    Raised when a path resolves outside the sandbox root.

    Attributes:
        requested_path: The path that was rejected.
        root_path: The sandbox root it was checked against.
    """

    def __init__(self, requested_path: str, root_path: str) -> None:
        self.requested_path = requested_path
        self.root_path = root_path
        super().__init__(f'Path "{requested_path}" is outside allowed root "{root_path}"')


class CommandNotAllowedError(SecurityError):
    """
    Raised when a command or its subcommand is not on the allowlist.

    Attributes:
        command: The executable name that was requested.
        arguments: The full argument list that accompanied it. Stored
            under this name because ``args`` belongs to BaseException.
    """

    def __init__(self, command: str, args: Sequence[str]) -> None:
        self.command = command
        self.arguments = tuple(args)
        super().__init__(f"Command not allowed: {' '.join([command, *self.arguments])}")
