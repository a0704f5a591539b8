# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from gradeci.model import Job
from gradeci.pipelines import PIPELINES, get_pipeline
from gradeci.runner import CIError, compile_steps, load_workflow, run_workflow
from gradeci.ui.console import Console, get_console, set_console


EXIT_INTERRUPTED = 130


def resolve_jobs(pipeline: str, workflow: str | None) -> tuple[str, list[Job]]:
    """
    Pick the jobs to run: an explicit workflow file wins over a
    built-in pipeline.

    Raises:
        SystemExit: If the workflow file cannot be found
    """
    console = get_console()

    if workflow:
        workflow_path = Path(workflow)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow}",
                suggestion="Specify a different path:\n  gradeci run --workflow my_workflow.py",
            )
            sys.exit(1)
        console.print_debug(f"Loading workflow from {workflow_path.resolve()}")
        return workflow_path.name, load_workflow(workflow_path)

    console.print_debug(f"Using built-in pipeline {pipeline!r}")
    return pipeline, get_pipeline(pipeline)


def execute(
    pipeline: str,
    workflow: str | None,
    repo_root: str,
    fail_fast: bool,
) -> None:
    """Shared body of the run-style commands. Always exits."""
    console = get_console()

    try:
        label, jobs = resolve_jobs(pipeline, workflow)

        console.print_run_started(
            pipeline=label,
            repo_root=str(Path(repo_root).resolve()),
            step_count=sum(len(j.steps) for j in jobs),
        )

        result = run_workflow(jobs, repo_root=repo_root, fail_fast=fail_fast, console=console)

        console.print_results(result.statuses)
        sys.exit(result.exit_code)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)
    except CIError as e:
        console.print_error("Runner error", e.message, details=[f"{k}: {v}" for k, v in e.details.items()])
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Print nothing of our own; only the tools' output is shown",
)
@click.pass_context
def cli(ctx, debug, quiet):
    """gradeci: sequential, fail-fast grading runner."""
    set_console(Console(debug=debug, quiet=quiet))
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


pipeline_option = click.option(
    "--pipeline",
    default="write_c",
    show_default=True,
    type=click.Choice(sorted(PIPELINES)),
    help="Built-in pipeline to run",
)
workflow_option = click.option(
    "--workflow",
    default=None,
    help="Workflow file path (overrides --pipeline)",
)
repo_root_option = click.option(
    "--repo-root",
    default=".",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory the steps run in",
)


@cli.command()
@pipeline_option
@workflow_option
@repo_root_option
@click.option("--fail-fast/--no-fail-fast", default=True, help="Stop at the first failing step")
def run(pipeline, workflow, repo_root, fail_fast):
    """Run a grading pipeline."""
    execute(pipeline, workflow, repo_root, fail_fast)


@cli.command()
@repo_root_option
def fix(repo_root):
    """Auto-correct formatting and lint findings (cargo fmt, clippy --fix)."""
    execute("fix", None, repo_root, True)


@cli.command()
@pipeline_option
@workflow_option
def plan(pipeline, workflow):
    """Print the steps a run would execute, without running them."""
    console = get_console()
    try:
        label, jobs = resolve_jobs(pipeline, workflow)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    print(f"PLAN: {label}")
    for j in jobs:
        print(f"\nJOB: {j.name}")
        if j.requires:
            print(f"Requires: {', '.join(j.requires)}")
        for env_key, env_value in j.env.items():
            print(f"env {env_key}={env_value}")
        for i, step in enumerate(compile_steps(j), start=1):
            console.print_plan_step(i, step.name, step.run, env=step.env, cwd=step.cwd)


@click.command(name="grade-write-c")
def grade_write_c():
    """Run the write_c grading steps in the current directory.

    Prints nothing of its own; the tools' output is the only diagnostic.
    """
    set_console(Console(quiet=True))
    execute("write_c", None, ".", True)


if __name__ == "__main__":
    cli()
