# runner.py
from __future__ import annotations

import os
import runpy
import shutil
import signal
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .model import Job, Step
from .step_workflows import fuzz as fuzz_workflow
from .step_workflows import lint as lint_workflow
from .step_workflows import test as test_workflow
from .ui.console import Console, get_console


# Exit code used when a required tool cannot be found (shell convention)
EXIT_TOOL_UNAVAILABLE = 127


@dataclass
class CIError(Exception):
    """
    Structured runner error with enough context for:
      - clean CLI output
      - debugging without full tracebacks
    """
    kind: str
    job: str
    step: str | None
    message: str
    details: dict

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}", f"job={self.job}"]
        if self.step:
            lines.append(f"step={self.step}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


TOOL_HINTS = {
    "cargo": "Install the Rust toolchain (https://rustup.rs) or fix PATH.",
    "rustfmt": "Install rustfmt (rustup component add rustfmt).",
    "clippy-driver": "Install clippy (rustup component add clippy).",
    "pytest": "Install pytest (e.g., pip install pytest).",
    "python3": "Install Python 3 or fix PATH (python3).",
}


def tool_unavailable(tool: str, job: str = "", step: str | None = None) -> CIError:
    hint = TOOL_HINTS.get(tool, f"Install {tool} or fix PATH.")
    return CIError(
        kind="tool_unavailable",
        job=job,
        step=step,
        message=f"{tool} is not available",
        details={"hint": hint, "tool": tool},
    )


def check_requirements(job: Job, env: Optional[Dict[str, str]] = None) -> None:
    """
    Make sure every tool in job.requires resolves on PATH.

    Only PATH is searched; the tools themselves are never started.
    """
    path = (env if env is not None else os.environ).get("PATH")
    for tool in job.requires:
        if shutil.which(tool, path=path) is None:
            raise tool_unavailable(tool, job=job.name)


# ----------------------------------------------------------------------
# Workflow loading (local file/module)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> List[Job]:
    """
    Load a workflow from a python file path.

    The file must define either:
      - workflow() -> List[Job]
      - JOBS = [Job, ...]

    Returns:
      List[Job]
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ValueError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"gradeci_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    jobs = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        jobs = globals_dict["workflow"]()
    elif "JOBS" in globals_dict:
        jobs = globals_dict["JOBS"]

    if not isinstance(jobs, list) or not all(isinstance(j, Job) for j in jobs):
        raise TypeError(
            "Workflow must return/define a List[Job]. "
            "Define workflow() -> List[Job] or JOBS = [Job, ...]."
        )

    return jobs


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class StepFailure(Exception):
    job: str
    step: str
    cmd: str
    exit_code: int

    def __str__(self) -> str:
        return f"[{self.job}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"


def exit_status(returncode: int) -> int:
    """
    Map a subprocess return code to a process exit code.

    A child killed by signal N reports -N; shells report that as 128 + N.
    """
    if returncode < 0:
        return 128 + (-returncode)
    return returncode


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------

@dataclass
class JobResult:
    job: str
    # step name -> "ok" | "failed" | "skipped"
    statuses: Dict[str, str] = field(default_factory=dict)
    failure: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def exit_code(self) -> int:
        if self.failure is None:
            return 0
        if isinstance(self.failure, StepFailure):
            return self.failure.exit_code or 1
        if isinstance(self.failure, CIError) and self.failure.kind == "tool_unavailable":
            return EXIT_TOOL_UNAVAILABLE
        return 1


@dataclass
class RunResult:
    jobs: List[JobResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(j.ok for j in self.jobs)

    @property
    def exit_code(self) -> int:
        # first failure decides, like `set -e`
        for j in self.jobs:
            if not j.ok:
                return j.exit_code
        return 0

    @property
    def statuses(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for j in self.jobs:
            for step, status in j.statuses.items():
                out[f"{j.job}/{step}"] = status
        return out


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

_COMPILERS = {
    "test": test_workflow.compile_test,
    "fuzz": fuzz_workflow.compile_fuzz,
}


def compile_steps(job: Job) -> List[Step]:
    """
    Expand typed steps into runnable ones.
    Only shell steps (kind=None) and lint steps reach the executor.
    """
    out: List[Step] = []
    for step in job.steps:
        compiler = _COMPILERS.get(step.kind or "")
        out.append(compiler(step) if compiler else step)
    return out


def step_env(job: Job, step: Step) -> Dict[str, str]:
    """Environment for a step's child process: os.environ < job.env < step.env."""
    env = os.environ.copy()
    env.update(job.env or {})
    env.update(step.env or {})
    return env


def resolve_cwd(job: Job, step: Step, repo_root: Path) -> Path:
    cwd = (repo_root / (step.cwd or ".")).resolve()
    if not cwd.exists():
        raise FileNotFoundError(f"[{job.name}] step '{step.name}' cwd not found: {cwd}")
    return cwd


def _run_shell_step(job: Job, step: Step, repo_root: Path) -> None:
    cwd = resolve_cwd(job, step, repo_root)

    # no capture: the tool's own output is the diagnostic
    proc = subprocess.run(
        step.run,
        shell=True,
        cwd=str(cwd),
        env=step_env(job, step),
    )

    if proc.returncode != 0:
        raise StepFailure(
            job=job.name,
            step=step.name,
            cmd=step.run,
            exit_code=exit_status(proc.returncode),
        )


def run_step(job: Job, step: Step, repo_root: Path) -> None:
    """Run one (compiled) step, blocking until it exits. Raises on failure."""
    if step.kind == "lint":
        lint_workflow.run_step(job, step, repo_root)
    elif step.kind is None:
        _run_shell_step(job, step, repo_root)
    else:
        raise ValueError(f"[{job.name}] step '{step.name}' has uncompiled kind {step.kind!r}")


def _report_unavailable(console: Console, err: CIError) -> None:
    # stderr even when quiet; a shell would print "command not found" too
    console.print_error(err.message, str(err), suggestion=err.details.get("hint"))


def run_job(
    job: Job,
    *,
    repo_root: str | Path = ".",
    fail_fast: bool = True,
    console: Console | None = None,
) -> JobResult:
    """
    Run a job's steps strictly in declared order.

    With fail_fast the first failing step ends the job and the remaining
    steps are recorded as "skipped" without being started.
    """
    console = console or get_console()
    repo_root_p = Path(repo_root).resolve()
    result = JobResult(job=job.name)

    console.print_job_start(job.name)
    steps = compile_steps(job)

    try:
        check_requirements(job, env={**os.environ, **job.env})
    except CIError as e:
        _report_unavailable(console, e)
        result.failure = e
        for step in steps:
            result.statuses[step.name] = "skipped"
        return result

    for step in steps:
        if result.failure is not None and fail_fast:
            result.statuses[step.name] = "skipped"
            console.print_step_skipped(step.name, "previous step failed")
            continue

        console.print_step(step.name, step.run, step.env)
        try:
            run_step(job, step, repo_root_p)
        except StepFailure as e:
            result.statuses[step.name] = "failed"
            killed_by = signal_name(e.exit_code)
            console.print_failure(
                step.name,
                str(e),
                exit_code=e.exit_code,
                hint=f"terminated by {killed_by}" if killed_by else None,
            )
            if result.failure is None:
                result.failure = e
        except CIError as e:
            result.statuses[step.name] = "failed"
            _report_unavailable(console, e)
            if result.failure is None:
                result.failure = e
        else:
            result.statuses[step.name] = "ok"
            console.print_success(step.name)

    return result


def run_workflow(
    jobs: List[Job],
    *,
    repo_root: str | Path = ".",
    fail_fast: bool = True,
    console: Console | None = None,
) -> RunResult:
    """Run jobs one after another; under fail_fast a failed job stops the run."""
    console = console or get_console()
    run = RunResult()

    for j in jobs:
        if fail_fast and not run.ok:
            console.print_info(f"JOB SKIPPED: {j.name} (previous job failed)")
            run.jobs.append(JobResult(job=j.name, statuses={s.name: "skipped" for s in j.steps}))
            continue
        run.jobs.append(run_job(j, repo_root=repo_root, fail_fast=fail_fast, console=console))

    return run


def signal_name(code: int) -> str | None:
    """Name of the signal behind a 128+N exit code, if any."""
    if code <= 128:
        return None
    try:
        return signal.Signals(code - 128).name
    except ValueError:
        return None
