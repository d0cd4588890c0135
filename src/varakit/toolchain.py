"""
Build, test and scaffold operations for Vara programs and their clients.

These are the consumers of the sandbox core: every path is resolved inside
the workspace root and every tool runs through a ProcessRunner. Security
violations are turned into failed results here, so callers only branch on
``success``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil

from varakit._types import (
    ClientScaffoldResult,
    CompileResult,
    ExecOptions,
    ScaffoldResult,
    TestResult,
)
from varakit.discovery import KNOWN_TOOLS, command_exists
from varakit.errors import SecurityError
from varakit.sandbox.runner import ProcessRunner
from varakit.security.paths import ensure_directory_within_root, resolve_within_root

DEFAULT_TARGET = "wasm32-gear"
BUILD_TIMEOUT = 600.0
TEST_TIMEOUT = 600.0

# Build targets whose output directory differs from the rustup target that produces it
RUSTUP_TARGET_ALIASES: dict[str, str] = {"wasm32-gear": "wasm32v1-none"}

PROJECT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
MAX_PROJECT_NAME_LENGTH = 64

CARGO_MISSING = f"cargo not found in PATH. {KNOWN_TOOLS['cargo'][1]}"

_SUMMARY_RE = re.compile(r"test result:.*?(\d+)\s+passed.*?(\d+)\s+failed.*?(\d+)\s+ignored")
_PASSED_RE = re.compile(r"test\s+\S+\s+\.\.\.\s+ok")
_FAILED_RE = re.compile(r"test\s+\S+\s+\.\.\.\s+FAILED")
_IGNORED_RE = re.compile(r"test\s+\S+\s+\.\.\.\s+ignored")


def _resolve_project(
    workspace_root: str,
    workspace_path: str | None,
    project_path: str | None,
) -> str:
    workspace = resolve_within_root(workspace_root, workspace_path) if workspace_path else workspace_root
    # The project is confined to the workspace root, not just the sub-workspace
    project = resolve_within_root(workspace, project_path) if project_path else workspace
    return resolve_within_root(workspace_root, project)


async def check_rust_target(target: str, runner: ProcessRunner) -> bool:
    """
    Check whether the rustup target behind ``target`` is installed.

    Returns True when rustup is unavailable, since the build itself will
    report a missing target more precisely.
    """
    rustup_target = RUSTUP_TARGET_ALIASES.get(target, target)
    result = await runner.spawn("rustup", ["target", "list", "--installed"])
    if not result.success:
        return True

    installed = {line.strip() for line in result.stdout_text.splitlines()}
    return rustup_target in installed


def _collect_artifacts(target_dir: str) -> tuple[list[str], list[str]]:
    wasm_paths: list[str] = []
    idl_paths: list[str] = []
    if not os.path.isdir(target_dir):
        return wasm_paths, idl_paths

    for name in sorted(os.listdir(target_dir)):
        if name.endswith(".wasm"):
            wasm_paths.append(os.path.join(target_dir, name))
        elif name.endswith(".idl"):
            idl_paths.append(os.path.join(target_dir, name))
    return wasm_paths, idl_paths


async def compile_program(
    workspace_root: str,
    *,
    workspace_path: str | None = None,
    project_path: str | None = None,
    release: bool = True,
    target: str = DEFAULT_TARGET,
    verbose: bool = False,
    runner: ProcessRunner | None = None,
    logger: logging.Logger | None = None,
) -> CompileResult:
    """
    Compile a program to WASM with ``cargo build``.

    Args:
        workspace_root: Sandbox root.
        workspace_path: Sub-workspace inside the root.
        project_path: Project directory relative to the workspace.
        release: Build the optimized profile.
        target: Build target; artifacts are read from ``target/<target>/<profile>``.
        verbose: Pass ``-v`` to cargo.
        runner: Process runner to use. Defaults to one with the built-in policy.
        logger: Logger to report through.

    Returns:
        CompileResult listing the produced .wasm and .idl files.
    """
    log = logger or logging.getLogger(__name__)
    runner = runner or ProcessRunner(logger=log)

    try:
        project_dir = _resolve_project(workspace_root, workspace_path, project_path)
    except SecurityError as exc:
        return CompileResult(success=False, error=str(exc))

    if not os.path.isfile(os.path.join(project_dir, "Cargo.toml")):
        return CompileResult(success=False, error=f"No Cargo.toml found at: {project_dir}")

    if not command_exists("cargo"):
        return CompileResult(success=False, error=CARGO_MISSING)

    if not await check_rust_target(target, runner):
        rustup_target = RUSTUP_TARGET_ALIASES.get(target, target)
        return CompileResult(
            success=False,
            error=f'Rust target "{rustup_target}" is not installed. Run: rustup target add {rustup_target}',
        )

    args = ["build"]
    if release:
        args.append("--release")
    args.extend(["--target", target])
    if verbose:
        args.append("-v")

    log.info("Compiling: cargo %s", " ".join(args))

    try:
        result = await runner.spawn("cargo", args, ExecOptions(cwd=project_dir, timeout=BUILD_TIMEOUT))
    except SecurityError as exc:
        return CompileResult(success=False, error=str(exc))

    if not result.success:
        return CompileResult(
            success=False,
            stdout=result.stdout_text,
            stderr=result.stderr_text,
            error=f"Compilation failed with exit code {result.exit_code}",
        )

    profile = "release" if release else "debug"
    wasm_paths, idl_paths = _collect_artifacts(os.path.join(project_dir, "target", target, profile))

    return CompileResult(
        success=True,
        wasm_paths=wasm_paths,
        idl_paths=idl_paths,
        stdout=result.stdout_text,
        stderr=result.stderr_text,
    )


def parse_test_output(output: str) -> tuple[int, int, int]:
    """
    Extract (passed, failed, ignored) counts from cargo test output.

    Sums every ``test result:`` line, since cargo prints one per test
    binary. Falls back to counting individual ``test name ... ok`` lines.
    """
    summaries = _SUMMARY_RE.findall(output)
    if summaries:
        passed = sum(int(p) for p, _, _ in summaries)
        failed = sum(int(f) for _, f, _ in summaries)
        ignored = sum(int(i) for _, _, i in summaries)
        return passed, failed, ignored

    return (
        len(_PASSED_RE.findall(output)),
        len(_FAILED_RE.findall(output)),
        len(_IGNORED_RE.findall(output)),
    )


def format_test_summary(passed: int, failed: int, ignored: int, success: bool) -> str:
    total = passed + failed + ignored
    status = "PASSED" if success else "FAILED"

    parts = [f"{status}: {total} test(s)", f"{passed} passed"]
    if failed:
        parts.append(f"{failed} failed")
    if ignored:
        parts.append(f"{ignored} ignored")
    return ", ".join(parts)


async def test_program(
    workspace_root: str,
    *,
    workspace_path: str | None = None,
    project_path: str | None = None,
    verbose: bool = False,
    filter: str | None = None,
    runner: ProcessRunner | None = None,
    logger: logging.Logger | None = None,
) -> TestResult:
    """
    Run ``cargo test`` for a program and summarize the results.

    Args:
        workspace_root: Sandbox root.
        workspace_path: Sub-workspace inside the root.
        project_path: Project directory relative to the workspace.
        verbose: Pass ``-v`` to cargo.
        filter: Only run tests whose name matches.
        runner: Process runner to use. Defaults to one with the built-in policy.
        logger: Logger to report through.

    Returns:
        TestResult with parsed pass/fail/ignore counts.
    """
    log = logger or logging.getLogger(__name__)
    runner = runner or ProcessRunner(logger=log)

    try:
        project_dir = _resolve_project(workspace_root, workspace_path, project_path)
    except SecurityError as exc:
        return TestResult(success=False, summary="Invalid project path", error=str(exc))

    if not os.path.isfile(os.path.join(project_dir, "Cargo.toml")):
        return TestResult(
            success=False,
            summary="No Cargo.toml found",
            error=f"No Cargo.toml found at: {project_dir}",
        )

    if filter and filter.startswith("-"):
        return TestResult(
            success=False,
            summary="Rejected test arguments",
            error=f"Test filter must not start with '-': {filter!r}",
        )

    if not command_exists("cargo"):
        return TestResult(success=False, summary="cargo not found", error=CARGO_MISSING)

    args = ["test"]
    if verbose:
        args.append("-v")
    if filter:
        args.append(filter)
    args.extend(["--", "--nocapture"])

    log.info("Testing: cargo %s", " ".join(args))

    try:
        result = await runner.spawn("cargo", args, ExecOptions(cwd=project_dir, timeout=TEST_TIMEOUT))
    except SecurityError as exc:
        return TestResult(success=False, summary="Rejected test arguments", error=str(exc))

    passed, failed, ignored = parse_test_output(result.stdout_text + result.stderr_text)

    error = None
    if result.timed_out:
        error = f"Tests timed out after {TEST_TIMEOUT:.0f}s"
    elif not result.success:
        error = f"Tests failed with exit code {result.exit_code}"

    return TestResult(
        success=result.success,
        passed=passed,
        failed=failed,
        ignored=ignored,
        stdout=result.stdout_text,
        stderr=result.stderr_text,
        summary=format_test_summary(passed, failed, ignored, result.success),
        error=error,
    )


def validate_project_name(name: str) -> str | None:
    """Return an error message if ``name`` is not a valid crate name, else None."""
    if not name:
        return "Project name must not be empty"
    if len(name) > MAX_PROJECT_NAME_LENGTH:
        return f"Project name must be at most {MAX_PROJECT_NAME_LENGTH} characters"
    if not PROJECT_NAME_PATTERN.match(name):
        return (
            f"Invalid project name {name!r}: must start with a lowercase letter "
            "and contain only lowercase letters, digits, '-' and '_'"
        )
    return None


async def _has_sails_cli(runner: ProcessRunner) -> bool:
    if not command_exists("cargo"):
        return False
    result = await runner.spawn("cargo", ["sails", "--help"])
    return result.success


def _list_files(project_path: str) -> list[str]:
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(project_path):
        dirnames[:] = sorted(d for d in dirnames if d not in ("target", ".git"))
        for filename in sorted(filenames):
            full = os.path.join(dirpath, filename)
            files.append(os.path.relpath(full, project_path).replace(os.sep, "/"))
    return files


async def scaffold_program(
    workspace_root: str,
    name: str,
    *,
    workspace_path: str | None = None,
    force: bool = False,
    runner: ProcessRunner | None = None,
    logger: logging.Logger | None = None,
) -> ScaffoldResult:
    """
    Create a new program project with the Sails CLI.

    Args:
        workspace_root: Sandbox root.
        name: Project (crate) name; also the new directory's name.
        workspace_path: Sub-workspace inside the root, created if missing.
        force: Replace an existing directory of the same name.
        runner: Process runner to use. Defaults to one with the built-in policy.
        logger: Logger to report through.

    Returns:
        ScaffoldResult listing the generated files.
    """
    log = logger or logging.getLogger(__name__)
    runner = runner or ProcessRunner(logger=log)

    name_error = validate_project_name(name)
    if name_error:
        return ScaffoldResult(success=False, error=name_error)

    try:
        workspace = ensure_directory_within_root(workspace_root, workspace_path or "")
        project_path = resolve_within_root(workspace, name)
        project_path = resolve_within_root(workspace_root, project_path)
    except (SecurityError, NotADirectoryError) as exc:
        return ScaffoldResult(success=False, error=str(exc))

    exists = os.path.lexists(project_path)
    if exists and not force:
        return ScaffoldResult(
            success=False,
            project_path=project_path,
            error=f"Directory already exists: {project_path}. Use force=True to overwrite.",
        )

    # Nothing is removed until generation is known to be possible
    if not await _has_sails_cli(runner):
        return ScaffoldResult(
            success=False,
            project_path=project_path,
            error="Sails CLI not available. Install it with: cargo install sails-cli",
        )

    if exists:
        log.info("Removing existing directory: %s", project_path)
        if os.path.isdir(project_path) and not os.path.islink(project_path):
            shutil.rmtree(project_path)
        else:
            os.remove(project_path)

    log.info("Scaffolding with Sails CLI: %s", name)
    result = await runner.spawn("cargo", ["sails", "new-program", name], ExecOptions(cwd=workspace))

    if not result.success:
        log.debug("Sails CLI stderr: %s", result.stderr_text)
        return ScaffoldResult(
            success=False,
            project_path=project_path,
            error=f"Sails CLI failed with exit code {result.exit_code}: {result.stderr_text.strip()}",
        )

    return ScaffoldResult(
        success=True,
        project_path=project_path,
        created_files=_list_files(project_path),
        next_steps=[f"cd {name}", "cargo build --release", "cargo test"],
    )


CLIENT_ARTIFACT_TARGETS = ("wasm32-gear", "wasm32v1-none")
CLIENT_ARTIFACT_PROFILES = ("release", "debug")
DEFAULT_CLIENT_NAME = "vara-program"

_CRATE_NAME_RE = re.compile(r'name\s*=\s*"([^"]+)"')


def _read_crate_name(project_dir: str) -> str:
    manifest = os.path.join(project_dir, "Cargo.toml")
    if not os.path.isfile(manifest):
        return DEFAULT_CLIENT_NAME
    with open(manifest, encoding="utf-8") as f:
        match = _CRATE_NAME_RE.search(f.read())
    return match.group(1) if match else DEFAULT_CLIENT_NAME


def find_build_artifacts(project_dir: str) -> tuple[str | None, str | None]:
    """
    Locate the program's WASM and IDL files.

    Target directories are searched in order, release before debug. An
    optimized ``.opt.wasm`` is preferred over a plain ``.wasm`` in the same
    directory.

    Returns:
        (wasm_path, idl_path); either is None when not found.
    """
    wasm_path: str | None = None
    idl_path: str | None = None

    for target in CLIENT_ARTIFACT_TARGETS:
        for profile in CLIENT_ARTIFACT_PROFILES:
            target_dir = os.path.join(project_dir, "target", target, profile)
            if not os.path.isdir(target_dir):
                continue

            names = sorted(os.listdir(target_dir))
            if wasm_path is None:
                optimized = [n for n in names if n.endswith(".opt.wasm")]
                plain = [n for n in names if n.endswith(".wasm")]
                if optimized or plain:
                    wasm_path = os.path.join(target_dir, (optimized or plain)[0])
            if idl_path is None:
                idls = [n for n in names if n.endswith(".idl")]
                if idls:
                    idl_path = os.path.join(target_dir, idls[0])

            if wasm_path and idl_path:
                return wasm_path, idl_path

    return wasm_path, idl_path


def _client_files(project_name: str, wasm_rel: str | None, idl_content: str | None) -> dict[str, str]:
    package = {
        "name": f"{project_name}-client",
        "version": "0.1.0",
        "private": True,
        "type": "module",
        "main": "dist/index.js",
        "scripts": {"build": "tsc"},
        "dependencies": {"@gear-js/api": "*", "sails-js": "*"},
        "devDependencies": {"typescript": "*"},
    }
    tsconfig = {
        "compilerOptions": {
            "target": "ES2022",
            "module": "NodeNext",
            "outDir": "dist",
            "strict": True,
        },
        "include": ["src"],
    }

    index_lines = [f"// Client for {project_name}"]
    if wasm_rel:
        index_lines.append(f"export const WASM_PATH = {json.dumps(wasm_rel)};")
    if idl_content is not None:
        index_lines.append(f"export const IDL = {json.dumps(idl_content)};")

    return {
        "package.json": json.dumps(package, indent=2) + "\n",
        "tsconfig.json": json.dumps(tsconfig, indent=2) + "\n",
        "src/index.ts": "\n".join(index_lines) + "\n",
        "README.md": f"# {project_name} client\n",
    }


async def scaffold_client(
    workspace_root: str,
    *,
    workspace_path: str | None = None,
    project_path: str | None = None,
    out_dir: str = "client",
    logger: logging.Logger | None = None,
) -> ClientScaffoldResult:
    """
    Generate a TypeScript client project for a program.

    Args:
        workspace_root: Sandbox root.
        workspace_path: Sub-workspace inside the root.
        project_path: Program directory relative to the workspace.
        out_dir: Client directory relative to the workspace.
        logger: Logger to report through.

    Returns:
        ClientScaffoldResult listing the generated files and the artifacts
        they refer to.
    """
    log = logger or logging.getLogger(__name__)

    try:
        project_dir = _resolve_project(workspace_root, workspace_path, project_path)
        workspace = resolve_within_root(workspace_root, workspace_path) if workspace_path else workspace_root
        client_dir = resolve_within_root(workspace_root, resolve_within_root(workspace, out_dir))
    except SecurityError as exc:
        return ClientScaffoldResult(success=False, error=str(exc))

    project_name = _read_crate_name(project_dir)
    wasm_path, idl_path = find_build_artifacts(project_dir)

    idl_content = None
    if idl_path:
        with open(idl_path, encoding="utf-8") as f:
            idl_content = f.read()

    wasm_rel = os.path.relpath(wasm_path, client_dir).replace(os.sep, "/") if wasm_path else None
    files = _client_files(project_name, wasm_rel, idl_content)

    try:
        ensure_directory_within_root(workspace_root, client_dir)
        created: list[str] = []
        for relative, content in files.items():
            target = resolve_within_root(client_dir, relative)
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "w", encoding="utf-8") as f:
                f.write(content)
            created.append(relative)
            log.info("Created: %s", target)
    except (SecurityError, NotADirectoryError) as exc:
        return ClientScaffoldResult(success=False, out_dir=client_dir, error=str(exc))

    next_steps = [
        f"cd {out_dir}",
        "npm install",
        "npm run build",
        "Set VARA_SEED environment variable with your seed phrase",
        f"WASM file: {wasm_path}" if wasm_path else "Build the program first: cargo build --release",
        f"IDL file: {idl_path}" if idl_path else "IDL will be generated during build",
    ]

    return ClientScaffoldResult(
        success=True,
        out_dir=client_dir,
        created_files=created,
        wasm_path=wasm_path,
        idl_path=idl_path,
        next_steps=next_steps,
    )
