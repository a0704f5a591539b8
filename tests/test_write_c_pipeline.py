"""The built-in write_c pipeline run through the real runner against stand-in tools."""

from __future__ import annotations

from gradeci.pipelines import write_c
from gradeci.runner import CIError, StepFailure, run_job


FMT = "cargo fmt --all -- --check STACK=unset"
CLIPPY = "cargo clippy STACK=unset"
TEST = "cargo test --release test_examples_write_c -- --nocapture STACK=33554432"
FUZZ = "python3 tests/fuzz.py --print -n80 --seed 22 STACK=33554432"


def _run(fake_tools, console):
    (job,) = write_c()
    return run_job(job, repo_root=fake_tools.root, console=console)


def test_all_steps_pass(fake_tools, console) -> None:
    result = _run(fake_tools, console)

    assert result.exit_code == 0
    assert fake_tools.calls() == [FMT, CLIPPY, TEST, FUZZ]
    assert set(result.statuses.values()) == {"ok"}


def test_fuzz_failure_after_three_passing_steps(fake_tools, console) -> None:
    fake_tools.fail("python3 tests/fuzz.py", 3)

    result = _run(fake_tools, console)

    assert fake_tools.calls() == [FMT, CLIPPY, TEST, FUZZ]
    assert isinstance(result.failure, StepFailure)
    assert result.failure.step == "Fuzz"
    assert result.exit_code == 3
    assert result.statuses == {
        "Format check": "ok",
        "Clippy": "ok",
        "Test write_c examples": "ok",
        "Fuzz": "failed",
    }


def test_clippy_failure_stops_tests_and_fuzz(fake_tools, console) -> None:
    fake_tools.fail("cargo clippy", 101)

    result = _run(fake_tools, console)

    assert fake_tools.calls() == [FMT, CLIPPY]
    assert result.exit_code == 101
    assert result.statuses == {
        "Format check": "ok",
        "Clippy": "failed",
        "Test write_c examples": "skipped",
        "Fuzz": "skipped",
    }


def test_format_failure_stops_everything(fake_tools, console) -> None:
    fake_tools.fail("cargo fmt", 1)

    result = _run(fake_tools, console)

    assert fake_tools.calls() == [FMT]
    assert result.exit_code == 1


def test_missing_cargo_runs_nothing(fake_tools, console, monkeypatch) -> None:
    (fake_tools.bin / "cargo").unlink()
    monkeypatch.setenv("PATH", str(fake_tools.bin))

    result = _run(fake_tools, console)

    assert isinstance(result.failure, CIError)
    assert result.failure.details["tool"] == "cargo"
    assert result.exit_code == 127
    assert fake_tools.calls() == []
    assert set(result.statuses.values()) == {"skipped"}
