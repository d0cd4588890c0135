"""
Main entry point: create_toolkit factory function.

This is the primary API for hosts (RPC servers, agent frameworks, scripts)
that expose the Vara development workflow over a workspace directory.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from varakit import toolchain
from varakit._types import (
    ClientScaffoldResult,
    CompileResult,
    ExecOptions,
    ExecutionResult,
    ScaffoldResult,
    TestResult,
)
from varakit.config import Settings
from varakit.discovery import discover_tools, generate_tool_prompt
from varakit.sandbox.runner import ProcessRunner
from varakit.security.paths import resolve_within_root


@dataclass
class Toolkit:
    """
    Toolkit returned by create_toolkit(), bound to one workspace root.

    Attributes:
        workspace_root: Absolute sandbox root every operation is confined to.
        runner: The process runner shared by all operations.
        tool_prompt: Status text describing the installed toolchain.
        logger: Logger the operations report through.
    """

    workspace_root: str
    runner: ProcessRunner
    tool_prompt: str = ""
    logger: logging.Logger | None = None

    async def compile(self, **kwargs: Any) -> CompileResult:
        """Compile a program. See toolchain.compile_program for arguments."""
        return await toolchain.compile_program(
            self.workspace_root, runner=self.runner, logger=self.logger, **kwargs
        )

    async def test(self, **kwargs: Any) -> TestResult:
        """Run a program's tests. See toolchain.test_program for arguments."""
        return await toolchain.test_program(
            self.workspace_root, runner=self.runner, logger=self.logger, **kwargs
        )

    async def scaffold(self, name: str, **kwargs: Any) -> ScaffoldResult:
        """Create a new program. See toolchain.scaffold_program for arguments."""
        return await toolchain.scaffold_program(
            self.workspace_root, name, runner=self.runner, logger=self.logger, **kwargs
        )

    async def scaffold_client(self, **kwargs: Any) -> ClientScaffoldResult:
        """Generate a TypeScript client. See toolchain.scaffold_client for arguments."""
        return await toolchain.scaffold_client(self.workspace_root, logger=self.logger, **kwargs)

    async def run(
        self,
        command: str,
        args: Sequence[str] = (),
        options: ExecOptions | None = None,
    ) -> ExecutionResult:
        """
        Run an allowlisted tool with its working directory inside the workspace.

        ``options.cwd`` is interpreted relative to the workspace root and
        defaults to the root itself.

        Raises:
            PathViolationError: If the working directory escapes the workspace.
            CommandNotAllowedError: If the command is not allowlisted.
            SecurityError: If an argument contains a dangerous pattern.
        """
        opts = options or ExecOptions()
        cwd = resolve_within_root(self.workspace_root, opts.cwd or "")
        return await self.runner.spawn(command, args, dataclasses.replace(opts, cwd=cwd))


def create_toolkit(
    *,
    workspace_root: str | None = None,
    settings: Settings | None = None,
    logger: logging.Logger | None = None,
    extra_instructions: str | None = None,
) -> Toolkit:
    """
    Create a toolkit for a workspace.

    Args:
        workspace_root: Sandbox root. Defaults to ``settings.workspace_root``.
        settings: Host settings. Read from the environment when omitted.
        logger: Logger injected into the runner and every operation.
        extra_instructions: Additional text for the tool prompt.

    Returns:
        Toolkit bound to the resolved workspace root.

    Example:
        >>> toolkit = create_toolkit(workspace_root="./programs")
        >>> result = await toolkit.compile(project_path="counter")
        >>> print(result.wasm_paths)
    """
    if workspace_root is None:
        settings = settings or Settings.from_env()
        workspace_root = settings.workspace_root

    root = os.path.abspath(workspace_root)
    log = logger or logging.getLogger(__name__)
    log.info("Workspace root: %s", root)

    tool_prompt = generate_tool_prompt(discover_tools(), extra_instructions=extra_instructions)

    return Toolkit(
        workspace_root=root,
        runner=ProcessRunner(logger=log),
        tool_prompt=tool_prompt,
        logger=log,
    )
