"""
Command allowlist and argument screening.

This is the security gate every tool invocation passes before a process is
spawned. It has two independent layers:

- an allowlist of executables, each optionally restricted to a set of
  first-argument subcommands;
- a fixed list of dangerous argument patterns, checked against every
  literal argument.

Arguments are never joined into a shell command line. The pattern scan is a
second line of defence for literal arguments handed to an allowed tool.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from varakit.errors import CommandNotAllowedError, SecurityError


@dataclass(frozen=True)
class AllowedCommand:
    """
    Allowlist entry for one executable.

    Attributes:
        command: Exact executable name (case-sensitive).
        allowed_subcommands: Permitted values for the first argument.
        require_subcommand: If True, the first argument must be one of
            ``allowed_subcommands``.
    """

    command: str
    allowed_subcommands: tuple[str, ...] = ()
    require_subcommand: bool = False

    def __post_init__(self) -> None:
        if self.require_subcommand and not self.allowed_subcommands:
            raise ValueError(
                f"Allowlist entry '{self.command}' requires a subcommand "
                "but lists no allowed subcommands"
            )


# Build toolchain for Vara programs and the JS package managers used for clients.
# Publishing, installing binaries and self-management subcommands are deliberately absent.
ALLOWED_COMMANDS: tuple[AllowedCommand, ...] = (
    AllowedCommand(
        "cargo",
        ("build", "test", "check", "sails", "clean", "fmt", "clippy"),
        require_subcommand=True,
    ),
    AllowedCommand("node"),
    AllowedCommand("npm", ("init", "install", "run", "test", "pack"), require_subcommand=True),
    AllowedCommand(
        "pnpm", ("init", "install", "add", "run", "test", "pack"), require_subcommand=True
    ),
    AllowedCommand(
        "yarn", ("init", "install", "add", "run", "test", "pack"), require_subcommand=True
    ),
    AllowedCommand("rustup", ("target", "show", "update"), require_subcommand=True),
)

# Bump when DANGEROUS_PATTERNS changes.
PATTERNS_VERSION = 1

# Dangerous argument patterns - compiled regex with human-readable descriptions
DANGEROUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[;&|`$]"), "Shell metacharacter"),
    (re.compile(r"\$\("), "Command substitution"),
    (re.compile(r"`"), "Backtick command substitution"),
    (re.compile(r"\.\.[/\\]"), "Parent directory traversal"),
    (re.compile(r">\s*/"), "Redirect to root"),
    (re.compile(r"<\s*/"), "Read from root"),
)


@dataclass(frozen=True)
class CommandPolicy:
    """
    Immutable allowlist plus argument patterns.

    Safe to share between concurrent invocations. The default instance,
    ``DEFAULT_POLICY``, is built from the module constants and is the only
    policy the toolchain operations use.
    """

    commands: tuple[AllowedCommand, ...] = ALLOWED_COMMANDS
    patterns: tuple[tuple[re.Pattern[str], str], ...] = DANGEROUS_PATTERNS
    _index: dict[str, AllowedCommand] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {entry.command: entry for entry in self.commands})

    def lookup(self, command: str) -> AllowedCommand | None:
        """Return the allowlist entry for ``command``, or None."""
        return self._index.get(command)

    def check_command(self, command: str, args: Sequence[str]) -> AllowedCommand:
        """
        Check the executable and its subcommand against the allowlist.

        Raises:
            CommandNotAllowedError: If the command is unknown, or a required
                subcommand is missing or not permitted.
        """
        entry = self.lookup(command)
        if entry is None:
            raise CommandNotAllowedError(command, args)

        if entry.require_subcommand:
            subcommand = args[0] if args else None
            if not subcommand or subcommand not in entry.allowed_subcommands:
                raise CommandNotAllowedError(command, args)

        return entry

    def check_arguments(self, args: Sequence[str]) -> None:
        """
        Screen every argument against the dangerous patterns.

        Raises:
            SecurityError: On the first argument matching any pattern.
        """
        for arg in args:
            for pattern, reason in self.patterns:
                if pattern.search(arg):
                    raise SecurityError(f'Argument contains dangerous pattern ({reason}): "{arg}"')

    def validate(self, command: str, args: Sequence[str]) -> None:
        """
        Run both layers for one invocation.

        The argument scan runs even when the allowlist check fails, so a
        hostile argument is always detected. The allowlist verdict wins when
        both layers reject.

        Raises:
            CommandNotAllowedError: If the allowlist rejects the invocation.
            SecurityError: If an argument matches a dangerous pattern.
        """
        try:
            self.check_command(command, args)
        except CommandNotAllowedError as exc:
            try:
                self.check_arguments(args)
            except SecurityError as pattern_exc:
                raise exc from pattern_exc
            raise
        self.check_arguments(args)


DEFAULT_POLICY = CommandPolicy()


def validate_command(
    command: str,
    args: Sequence[str],
    policy: CommandPolicy = DEFAULT_POLICY,
) -> None:
    """
    Validate a command and its arguments before anything is spawned.

    Args:
        command: Executable name, matched exactly against the allowlist.
        args: Literal argument list.
        policy: Policy to validate against. Defaults to the built-in table.

    Raises:
        CommandNotAllowedError: If the command or subcommand is not allowed.
        SecurityError: If any argument contains a dangerous pattern.
    """
    policy.validate(command, args)
