"""
Top-level facade for varakit.
"""

from varakit._types import (
    ClientScaffoldResult,
    CompileResult,
    ExecOptions,
    ExecutionResult,
    ScaffoldResult,
    TestResult,
)
from varakit.api import Toolkit, create_toolkit
from varakit.config import Settings
from varakit.discovery import command_exists, which
from varakit.errors import (
    CommandNotAllowedError,
    PathViolationError,
    SecurityError,
    VarakitError,
)
from varakit.logging_setup import configure_logging
from varakit.sandbox.runner import ProcessRunner, safe_spawn
from varakit.security.paths import (
    assert_within_root,
    ensure_directory_within_root,
    is_within_root,
    resolve_within_root,
    safe_path,
)
from varakit.security.policy import (
    ALLOWED_COMMANDS,
    AllowedCommand,
    CommandPolicy,
    validate_command,
)

# Exports
__all__ = [
    "ClientScaffoldResult",
    "ALLOWED_COMMANDS",
    "AllowedCommand",
    "CommandNotAllowedError",
    "CommandPolicy",
    "CompileResult",
    "ExecOptions",
    "ExecutionResult",
    "PathViolationError",
    "ProcessRunner",
    "ScaffoldResult",
    "SecurityError",
    "Settings",
    "TestResult",
    "Toolkit",
    "VarakitError",
    "assert_within_root",
    "command_exists",
    "configure_logging",
    "create_toolkit",
    "ensure_directory_within_root",
    "is_within_root",
    "resolve_within_root",
    "safe_path",
    "safe_spawn",
    "validate_command",
    "which",
]
