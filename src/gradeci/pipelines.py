# pipelines.py
# Built-in grading pipelines. Each entry is a workflow() -> List[Job].
from __future__ import annotations

from typing import Callable, Dict, List

from .dsl import build, job, wf
from .model import Job
from .step_workflows.fuzz import fuzz_step
from .step_workflows.lint import lint_step
from .step_workflows.test import test_step


# Deep recursion in the compiler under test needs a bigger thread stack.
STACK_ENV = "RUST_MIN_STACK"
STACK_SIZE = 32 * 1024 * 1024  # 33554432

TEST_FILTER = "test_examples_write_c"
FUZZ_SCRIPT = "tests/fuzz.py"
FUZZ_ITERATIONS = 80
FUZZ_SEED = 22


def stack_env() -> Dict[str, str]:
    return {STACK_ENV: str(STACK_SIZE)}


def write_c() -> List[Job]:
    """Format check, clippy, write_c example tests, then the fuzzer."""
    return wf(
        job(
            "write_c",
            # run `gradeci fix` to auto-correct these two
            lint_step("Format check", tool="cargo", args="fmt --all -- --check"),
            lint_step("Clippy", tool="cargo", args="clippy"),
            test_step(
                "Test write_c examples",
                framework="cargo",
                filter=TEST_FILTER,
                release=True,
                nocapture=True,
                env=stack_env(),
            ),
            fuzz_step(
                "Fuzz",
                script=FUZZ_SCRIPT,
                iterations=FUZZ_ITERATIONS,
                seed=FUZZ_SEED,
                print_output=True,
                env=stack_env(),
            ),
            requires=["cargo", "python3"],
        )
    )


def fix() -> List[Job]:
    """Auto-correcting counterparts of the read-only lint steps."""
    return wf(
        build("fix")
        .define_requirements("cargo")
        .define_step("Format", "cargo fmt --all")
        .define_step("Clippy fix", "cargo clippy --fix")
        .build()
    )


PIPELINES: Dict[str, Callable[[], List[Job]]] = {
    "write_c": write_c,
    "fix": fix,
}


def get_pipeline(name: str) -> List[Job]:
    try:
        factory = PIPELINES[name]
    except KeyError:
        raise ValueError(
            f"Unknown pipeline {name!r}. Known pipelines: {sorted(PIPELINES)}"
        ) from None
    return factory()
