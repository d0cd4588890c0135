"""Framework integrations for varakit.

Import the submodule for the framework in use:

- ``varakit.integrations.langchain`` (requires ``langchain-core``)
- ``varakit.integrations.pydantic_ai`` (requires ``pydantic-ai``)
"""

from varakit.integrations._render import render_client, render_compile, render_scaffold, render_test

__all__ = ["render_client", "render_compile", "render_scaffold", "render_test"]
