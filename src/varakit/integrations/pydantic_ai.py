"""
PydanticAI integration for varakit.

Provides helpers to create PydanticAI-compatible tools.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

try:
    from pydantic_ai import Tool
except ImportError:
    raise ImportError(
        "PydanticAI integration requires 'pydantic-ai'. "
        "Install with `pip install varakit[pydantic-ai]`"
    )

from varakit.integrations._render import render_client, render_compile, render_scaffold, render_test

if TYPE_CHECKING:
    from varakit.api import Toolkit


def create_pydantic_ai_tools(toolkit: Toolkit) -> list[Tool]:
    """
    Create PydanticAI tools bound to a Toolkit.

    Example:
        >>> from pydantic_ai import Agent
        >>> tools = create_pydantic_ai_tools(create_toolkit(workspace_root="."))
        >>> agent = Agent("openai:gpt-4o", tools=tools)
    """

    async def compile_program(project_path: str = ".", release: bool = True) -> str:
        """
        Compile a Vara program in the workspace to WASM.

        Args:
            project_path: Project directory relative to the workspace.
            release: Build the optimized profile.
        """
        return render_compile(await toolkit.compile(project_path=project_path, release=release))

    async def test_program(project_path: str = ".", filter: str | None = None) -> str:
        """
        Run the tests of a Vara program in the workspace.

        Args:
            project_path: Project directory relative to the workspace.
            filter: Only run tests whose name matches.
        """
        return render_test(await toolkit.test(project_path=project_path, filter=filter))

    async def scaffold_program(name: str, force: bool = False) -> str:
        """
        Create a new Vara program project in the workspace.

        Args:
            name: Crate name for the new project.
            force: Replace an existing directory of the same name.
        """
        return render_scaffold(await toolkit.scaffold(name, force=force))

    async def scaffold_client(project_path: str = ".", out_dir: str = "client") -> str:
        """
        Generate a TypeScript client for a built Vara program.

        Args:
            project_path: Program directory relative to the workspace.
            out_dir: Client directory relative to the workspace.
        """
        return render_client(await toolkit.scaffold_client(project_path=project_path, out_dir=out_dir))

    return [
        Tool(compile_program, takes_ctx=False),
        Tool(test_program, takes_ctx=False),
        Tool(scaffold_program, takes_ctx=False),
        Tool(scaffold_client, takes_ctx=False),
    ]
