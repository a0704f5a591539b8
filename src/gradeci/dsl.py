# src/gradeci/dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from .model import Step, Job


def _stringify(env: Mapping[str, object] | None) -> Dict[str, str]:
    # force values to str so they can be handed to subprocess as-is
    return {k: str(v) for k, v in (env or {}).items()}


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(
    name: str,
    cmd: str,
    *,
    cwd: str | None = None,
    env: Mapping[str, object] | None = None,
) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd, env=_stringify(env))


# ---------------------------------------------------------------------
# Functional Job helper
# ---------------------------------------------------------------------

def job(
    name: str,
    *steps: Step,  # allow: job("x", sh(...), sh(...))
    steps_list: Optional[List[Step]] = None,  # allow: job("x", steps_list=[...])
    env: Optional[Mapping[str, object]] = None,
    requires: Optional[List[str]] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> Job:
    steps_final: List[Step] = []
    if steps_list:
        steps_final.extend(list(steps_list))
    steps_final.extend(list(steps))

    if not steps_final:
        raise ValueError(f"job({name!r}) must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    return Job(
        name=name,
        steps=steps_final,
        env=_stringify(env),
        requires=list(requires or []),
    )


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class JobBuilder:
    def __init__(self, name: str):
        self.name = name
        self._steps: list[Step] = []
        self._env: dict[str, str] = {}
        self._requires: list[str] = []

    def define_requirements(self, *tools: str):
        self._requires.extend(tools)
        return self

    def define_step(self, name: str, run: str, cwd: str | None = None, **env):
        self._steps.append(sh(name, run, cwd=cwd, env=env))
        return self

    def add_step(self, step: Step):
        self._steps.append(step)
        return self

    def with_env(self, **env):
        self._env.update(_stringify(env))
        return self

    def build(self) -> Job:
        if not self._steps:
            raise ValueError(f"Job '{self.name}' has no steps")

        return Job(
            name=self.name,
            steps=list(self._steps),
            env=dict(self._env),
            requires=list(self._requires),
        )


def build(name: str) -> JobBuilder:
    """Convenience: build('fix').define_step(...).build()"""
    return JobBuilder(name)


# ---------------------------------------------------------------------
# Workflow helper (single-file story)
# ---------------------------------------------------------------------

def wf(*jobs: Job) -> List[Job]:
    """
    Workflow definition helper.

    Users can write:
        from gradeci import wf, job, sh

        def workflow():
            return wf(
                job(...),
                job(...),
            )

    Or use JOBS directly:
        JOBS = wf(job(...), job(...))

    Jobs run in the order given here.
    """
    return list(jobs)
