"""Security module for varakit."""

from varakit.security.paths import (
    assert_within_root,
    ensure_directory_within_root,
    is_within_root,
    join_safe,
    resolve_within_root,
    safe_path,
)
from varakit.security.policy import (
    ALLOWED_COMMANDS,
    DANGEROUS_PATTERNS,
    DEFAULT_POLICY,
    PATTERNS_VERSION,
    AllowedCommand,
    CommandPolicy,
    validate_command,
)

__all__ = [
    "ALLOWED_COMMANDS",
    "DANGEROUS_PATTERNS",
    "DEFAULT_POLICY",
    "PATTERNS_VERSION",
    "AllowedCommand",
    "CommandPolicy",
    "assert_within_root",
    "ensure_directory_within_root",
    "is_within_root",
    "join_safe",
    "resolve_within_root",
    "safe_path",
    "validate_command",
]
