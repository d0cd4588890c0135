"""Plain-text rendering of toolchain results for LLM tool output."""

from __future__ import annotations

from varakit._types import ClientScaffoldResult, CompileResult, ScaffoldResult, TestResult

# Keep tool output small enough for a model context
MAX_LOG_CHARS = 4_000


def _tail(text: str) -> str:
    if len(text) <= MAX_LOG_CHARS:
        return text
    return f"[... {len(text) - MAX_LOG_CHARS} characters omitted]\n" + text[-MAX_LOG_CHARS:]


def render_compile(result: CompileResult) -> str:
    if not result.success:
        lines = [f"Error: {result.error}"]
        if result.stderr:
            lines.append(_tail(result.stderr))
        return "\n".join(lines)

    lines = ["Compilation successful."]
    lines.extend(f"WASM: {path}" for path in result.wasm_paths)
    lines.extend(f"IDL: {path}" for path in result.idl_paths)
    return "\n".join(lines)


def render_test(result: TestResult) -> str:
    lines = [result.summary]
    if not result.success:
        if result.error:
            lines.append(f"Error: {result.error}")
        output = (result.stdout + result.stderr).strip()
        if output:
            lines.append(_tail(output))
    return "\n".join(lines)


def render_scaffold(result: ScaffoldResult) -> str:
    if not result.success:
        return f"Error: {result.error}"

    lines = [f"Project created at: {result.project_path}", "Files:"]
    lines.extend(f"  {name}" for name in result.created_files)
    lines.append("Next steps:")
    lines.extend(f"  {i}. {step}" for i, step in enumerate(result.next_steps, 1))
    return "\n".join(lines)


def render_client(result: ClientScaffoldResult) -> str:
    if not result.success:
        return f"Error: {result.error}"

    lines = [f"Client created at: {result.out_dir}", "Files:"]
    lines.extend(f"  {name}" for name in result.created_files)
    lines.append("Next steps:")
    lines.extend(f"  {i}. {step}" for i, step in enumerate(result.next_steps, 1))
    return "\n".join(lines)
