# step_workflows/lint.py
from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import List, Mapping

from ..model import Job, Step


# ---------------------------------------------------------------------
# Lint step helper
# ---------------------------------------------------------------------

def lint_step(
    name: str,
    tool: str,
    args: str | None = None,
    *,
    cwd: str | None = None,
    files: List[str] | None = None,
    env: Mapping[str, object] | None = None,
) -> Step:
    """
    Create a lint step that runs a read-only checking tool.

    Example:
        lint_step("Format check", tool="cargo", args="fmt --all -- --check")
    """
    cmd_parts = [tool]
    if args:
        cmd_parts.extend(shlex.split(args))
    if files:
        cmd_parts.extend(files)

    return Step(
        name=name,
        run=shlex.join(cmd_parts),
        cwd=cwd,
        env={k: str(v) for k, v in (env or {}).items()},
        kind="lint",
        data={"tool": tool, "args": args, "files": list(files or [])},
    )


def lint_command(step: Step) -> List[str]:
    """Rebuild the argv for a lint step (no shell involved)."""
    data = step.data or {}
    tool = data.get("tool")
    if not tool:
        raise ValueError(f"step '{step.name}' has no lint tool")

    cmd_parts = [tool]
    args = data.get("args")
    if args:
        # Split args string into list, handling quoted strings
        cmd_parts.extend(shlex.split(args))
    cmd_parts.extend(data.get("files") or [])
    return cmd_parts


# ---------------------------------------------------------------------
# Lint step execution
# ---------------------------------------------------------------------

def run_step(job: Job, step: Step, repo_root: Path) -> None:
    """Run a lint step, streaming the tool's output."""
    # Import here to avoid circular import
    from ..runner import StepFailure, resolve_cwd, step_env, exit_status, tool_unavailable

    cmd_parts = lint_command(step)
    cwd = resolve_cwd(job, step, repo_root)

    try:
        proc = subprocess.run(
            cmd_parts,
            shell=False,
            cwd=str(cwd),
            env=step_env(job, step),
        )
    except FileNotFoundError:
        raise tool_unavailable(cmd_parts[0], job=job.name, step=step.name) from None

    if proc.returncode != 0:
        raise StepFailure(
            job=job.name,
            step=step.name,
            cmd=shlex.join(cmd_parts),
            exit_code=exit_status(proc.returncode),
        )
