# step_workflows/fuzz.py
from __future__ import annotations

import shlex
from typing import Mapping

from ..dsl import sh
from ..model import Step


# ---------------------------------------------------------------------
# Fuzz step helper
# ---------------------------------------------------------------------

def fuzz_command(
    script: str = "tests/fuzz.py",
    *,
    iterations: int,
    seed: int | None = None,
    print_output: bool = True,
    interpreter: str = "python3",
) -> str:
    """
    Render the fuzz-script invocation, e.g.

        python3 tests/fuzz.py --print -n80 --seed 22
    """
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations <= 0:
        raise ValueError(f"iterations must be a positive integer, got {iterations!r}")

    parts = [interpreter, script]
    if print_output:
        parts.append("--print")
    parts.append(f"-n{iterations}")
    if seed is not None:
        parts.extend(["--seed", str(seed)])
    return shlex.join(parts)


def fuzz_step(
    name: str,
    *,
    script: str = "tests/fuzz.py",
    iterations: int,
    seed: int | None = None,
    print_output: bool = True,
    interpreter: str = "python3",
    cwd: str | None = None,
    env: Mapping[str, object] | None = None,
) -> Step:
    """Create a typed step that drives an external fuzz-testing script."""
    data = {
        "script": script,
        "iterations": iterations,
        "seed": seed,
        "print_output": print_output,
        "interpreter": interpreter,
    }
    return Step(
        name=name,
        run=fuzz_command(**data),
        cwd=cwd,
        env={k: str(v) for k, v in (env or {}).items()},
        kind="fuzz",
        data=data,
    )


def compile_fuzz(step: Step) -> Step:
    """Turn a typed fuzz step into a runnable shell step."""
    data = dict(step.data or {})
    return sh(step.name, fuzz_command(**data), cwd=step.cwd, env=step.env)
