from __future__ import annotations

import shlex
from typing import Mapping

from ..dsl import sh
from ..model import Step


def test_step(
    name: str,
    *,
    framework: str = "cargo",
    filter: str | None = None,
    release: bool = False,
    nocapture: bool = False,
    args: str | None = None,
    cwd: str | None = None,
    env: Mapping[str, object] | None = None,
) -> Step:
    """
    Create a typed test step.

        test_step("write_c tests", filter="test_examples_write_c",
                  release=True, nocapture=True)
    """
    data = {
        "framework": framework,
        "filter": filter,
        "release": release,
        "nocapture": nocapture,
        "args": args,
    }
    return Step(
        name=name,
        run=test_command(data),
        cwd=cwd,
        env={k: str(v) for k, v in (env or {}).items()},
        kind="test",
        data=data,
    )


# keep pytest from collecting the helper above
test_step.__test__ = False


def test_command(data: Mapping[str, object]) -> str:
    framework = data.get("framework")
    flt = data.get("filter")
    args = (data.get("args") or "").strip()

    if framework == "cargo":
        parts = ["cargo", "test"]
        if data.get("release"):
            parts.append("--release")
        if flt:
            parts.append(str(flt))
        if args:
            parts.extend(shlex.split(args))
        if data.get("nocapture"):
            parts.extend(["--", "--nocapture"])
        return shlex.join(parts)

    if framework == "pytest":
        parts = ["pytest"]
        if args:
            parts.extend(shlex.split(args))
        if flt:
            parts.extend(["-k", str(flt)])
        if data.get("nocapture"):
            parts.append("-s")
        return shlex.join(parts)

    raise ValueError(f"Unknown framework: {framework!r}")


test_command.__test__ = False


def compile_test(step: Step) -> Step:
    """
    Turn a typed test step into a runnable shell step.
    Runner never sees kind='test' steps after compilation.
    """
    return sh(step.name, test_command(step.data or {}), cwd=step.cwd, env=step.env)
