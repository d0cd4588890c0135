"""
Core type definitions for varakit.

Uses dataclasses for lightweight, typed value objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_TIMEOUT = 300.0
DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024

# Exit codes used for outcomes where no child process reported one.
EXIT_NOT_FOUND = 127
EXIT_TIMED_OUT = 124
EXIT_FAILURE = 1

TIMEOUT_MARKER = "\nProcess timed out"


@dataclass(frozen=True)
class ExecOptions:
    """
    Per-invocation options for a spawned tool.

    Attributes:
        cwd: Working directory. Defaults to the current process directory.
        env: Variables overlaid on the current process environment.
        timeout: Wall-clock seconds before the child is terminated.
        max_output_bytes: Cap applied separately to stdout and stderr.
    """

    cwd: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Immutable result from a tool invocation."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""
    timed_out: bool = False
    truncated: bool = False

    @property
    def success(self) -> bool:
        """Return True if the tool exited with code 0 and did not time out."""
        return self.exit_code == 0 and not self.timed_out

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class CompileResult:
    """Outcome of a program build."""

    success: bool
    wasm_paths: list[str] = field(default_factory=list)
    idl_paths: list[str] = field(default_factory=list)
    stdout: str = ""
    stderr: str = ""
    error: str | None = None


@dataclass(frozen=True)
class TestResult:
    """Outcome of a program test run, with counts parsed from cargo output."""

    __test__ = False  # not a pytest test class

    success: bool
    passed: int = 0
    failed: int = 0
    ignored: int = 0
    stdout: str = ""
    stderr: str = ""
    summary: str = ""
    error: str | None = None


@dataclass(frozen=True)
class ScaffoldResult:
    """Outcome of creating a new program project."""

    success: bool
    project_path: str = ""
    created_files: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class ClientScaffoldResult:
    """Outcome of generating a TypeScript client for a built program."""

    success: bool
    out_dir: str = ""
    created_files: list[str] = field(default_factory=list)
    wasm_path: str | None = None
    idl_path: str | None = None
    next_steps: list[str] = field(default_factory=list)
    error: str | None = None
