"""LangChain integration for varakit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from varakit.integrations._render import render_client, render_compile, render_scaffold, render_test

if TYPE_CHECKING:
    from varakit.api import Toolkit

HAS_LANGCHAIN = False
_StructuredTool: Any = None

try:
    import langchain_core.tools

    _StructuredTool = langchain_core.tools.StructuredTool
    HAS_LANGCHAIN = True
except ImportError:
    pass


def create_langchain_tools(toolkit: Toolkit) -> dict[str, Any]:
    """
    Create LangChain tools from a Toolkit.

    The tools are async; invoke them with ``ainvoke``.

    Args:
        toolkit: The workspace toolkit to wrap.

    Returns:
        Dictionary of LangChain StructuredTool instances.

    Raises:
        ImportError: If langchain-core is not installed.

    Example:
        >>> toolkit = create_toolkit(workspace_root=".")
        >>> tools = create_langchain_tools(toolkit)
        >>> agent = create_react_agent(llm, list(tools.values()))
    """
    if not HAS_LANGCHAIN:
        raise ImportError(
            "LangChain integration requires langchain-core. "
            "Install with: pip install varakit[langchain]"
        )

    async def compile_program(project_path: str = ".", release: bool = True) -> str:
        """Compile a Vara program in the workspace to WASM."""
        result = await toolkit.compile(project_path=project_path, release=release)
        return render_compile(result)

    async def test_program(project_path: str = ".", filter: str | None = None) -> str:
        """Run the tests of a Vara program in the workspace."""
        result = await toolkit.test(project_path=project_path, filter=filter)
        return render_test(result)

    async def scaffold_program(name: str, force: bool = False) -> str:
        """Create a new Vara program project in the workspace."""
        result = await toolkit.scaffold(name, force=force)
        return render_scaffold(result)

    async def scaffold_client(project_path: str = ".", out_dir: str = "client") -> str:
        """Generate a TypeScript client for a built Vara program."""
        result = await toolkit.scaffold_client(project_path=project_path, out_dir=out_dir)
        return render_client(result)

    compile_tool = _StructuredTool.from_function(
        coroutine=compile_program,
        name="compile_program",
        description=f"Compile a Vara program to WASM. {toolkit.tool_prompt}",
    )

    test_tool = _StructuredTool.from_function(
        coroutine=test_program,
        name="test_program",
        description="Run cargo tests for a Vara program and summarize the results.",
    )

    scaffold_tool = _StructuredTool.from_function(
        coroutine=scaffold_program,
        name="scaffold_program",
        description="Create a new Vara program project with the Sails CLI.",
    )

    client_tool = _StructuredTool.from_function(
        coroutine=scaffold_client,
        name="scaffold_client",
        description="Generate a TypeScript client project for a built Vara program.",
    )

    return {
        "compile_program": compile_tool,
        "test_program": test_tool,
        "scaffold_program": scaffold_tool,
        "scaffold_client": client_tool,
    }
