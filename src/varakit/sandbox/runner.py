"""
Shell-free process runner for allowlisted tools.

Uses asyncio.subprocess for non-blocking execution. Every invocation is
validated against a CommandPolicy before the operating system is touched,
and the resolved executable is launched with a literal argument list.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Sequence

from varakit._types import (
    EXIT_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_TIMED_OUT,
    TIMEOUT_MARKER,
    ExecOptions,
    ExecutionResult,
)
from varakit.discovery import command_exists, which
from varakit.errors import SecurityError
from varakit.security.policy import DEFAULT_POLICY, CommandPolicy

KILL_GRACE_PERIOD = 5.0
_READ_CHUNK = 64 * 1024


class _CappedBuffer:
    """Accumulates stream data up to a byte limit and drops the rest."""

    def __init__(self, limit: int) -> None:
        self._limit = limit
        self._chunks: list[bytes] = []
        self._size = 0
        self.truncated = False

    def append(self, chunk: bytes) -> None:
        room = self._limit - self._size
        if room <= 0:
            self.truncated = True
            return
        if len(chunk) > room:
            chunk = chunk[:room]
            self.truncated = True
        self._chunks.append(chunk)
        self._size += len(chunk)

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


async def _drain(stream: asyncio.StreamReader | None, buffer: _CappedBuffer) -> None:
    # Keep reading past the cap so the child never blocks on a full pipe.
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        buffer.append(chunk)


class ProcessRunner:
    """
    Runs allowlisted tools as child processes without a shell.

    Security features:
    - Allowlist and argument-pattern validation before spawning
    - Executable resolved from the search path, never through a shell
    - Timeout enforcement with graceful termination, then kill
    - Per-stream output caps to bound memory use

    Example:
        >>> runner = ProcessRunner()
        >>> result = await runner.spawn("cargo", ["build", "--release"])
        >>> print(result.exit_code)
    """

    def __init__(
        self,
        policy: CommandPolicy = DEFAULT_POLICY,
        *,
        logger: logging.Logger | None = None,
        kill_grace_period: float = KILL_GRACE_PERIOD,
    ) -> None:
        """
        Initialize a process runner.

        Args:
            policy: Allowlist and argument patterns to enforce.
            logger: Logger to report through. Defaults to this module's logger.
            kill_grace_period: Seconds between terminate and kill on timeout.
        """
        self._policy = policy
        self._logger = logger or logging.getLogger(__name__)
        self._kill_grace_period = kill_grace_period

    @property
    def policy(self) -> CommandPolicy:
        return self._policy

    async def spawn(
        self,
        command: str,
        args: Sequence[str] = (),
        options: ExecOptions | None = None,
    ) -> ExecutionResult:
        """
        Validate and execute a tool, returning its outcome.

        Operational failures (tool not installed, missing working directory,
        timeout, non-zero exit, OS spawn errors) are reported in the result.

        Args:
            command: Allowlisted executable name.
            args: Literal arguments passed to the executable.
            options: Working directory, environment, timeout and output cap.

        Returns:
            ExecutionResult with exit code and captured output.

        Raises:
            CommandNotAllowedError: If the command is not allowlisted.
            SecurityError: If an argument contains a dangerous pattern.
        """
        args = list(args)
        try:
            self._policy.validate(command, args)
        except SecurityError as exc:
            self._logger.warning("Rejected command %s: %s", command, exc)
            raise

        opts = options or ExecOptions()
        cwd = opts.cwd if opts.cwd is not None else os.getcwd()
        env = {**os.environ, **opts.env}

        executable = which(command)
        if executable is None:
            return ExecutionResult(
                exit_code=EXIT_NOT_FOUND,
                stderr=f"Command not found: {command}".encode(),
            )

        if not os.path.isdir(cwd):
            return ExecutionResult(
                exit_code=EXIT_FAILURE,
                stderr=f"Working directory does not exist: {cwd}".encode(),
            )

        self._logger.debug("Executing: %s %s (cwd=%s)", command, " ".join(args), cwd)

        try:
            proc = await asyncio.create_subprocess_exec(
                executable,
                *args,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as exc:
            # ValueError: NUL bytes in arguments or malformed environment names
            self._logger.error("Failed to spawn %s: %s", command, exc)
            return ExecutionResult(exit_code=EXIT_FAILURE, stderr=str(exc).encode())

        stdout = _CappedBuffer(opts.max_output_bytes)
        stderr = _CappedBuffer(opts.max_output_bytes)
        timed_out = False

        try:
            await asyncio.wait_for(
                asyncio.gather(
                    _drain(proc.stdout, stdout),
                    _drain(proc.stderr, stderr),
                    proc.wait(),
                ),
                timeout=opts.timeout,
            )
        except asyncio.TimeoutError:
            timed_out = True
            self._logger.warning("%s timed out after %ss", command, opts.timeout)
            await self._terminate(proc)

        truncated = stdout.truncated or stderr.truncated

        if timed_out:
            return ExecutionResult(
                exit_code=EXIT_TIMED_OUT,
                stdout=stdout.getvalue(),
                stderr=stderr.getvalue() + TIMEOUT_MARKER.encode(),
                timed_out=True,
                truncated=truncated,
            )

        returncode = proc.returncode
        # A negative code means the child was killed by a signal
        exit_code = returncode if returncode is not None and returncode >= 0 else EXIT_FAILURE

        return ExecutionResult(
            exit_code=exit_code,
            stdout=stdout.getvalue(),
            stderr=stderr.getvalue(),
            truncated=truncated,
        )

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        """Send a graceful termination signal, then kill after the grace period."""
        with contextlib.suppress(ProcessLookupError):
            proc.terminate()
        try:
            await asyncio.wait_for(proc.wait(), timeout=self._kill_grace_period)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()


async def safe_spawn(
    command: str,
    args: Sequence[str] = (),
    options: ExecOptions | None = None,
    *,
    logger: logging.Logger | None = None,
) -> ExecutionResult:
    """
    Run one tool invocation with the default policy.

    See ProcessRunner.spawn for behaviour and errors.
    """
    return await ProcessRunner(logger=logger).spawn(command, args, options)


__all__ = ["KILL_GRACE_PERIOD", "ProcessRunner", "command_exists", "safe_spawn"]
