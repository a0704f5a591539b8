"""Console output formatting utilities for gradeci."""

from __future__ import annotations

import sys
from typing import Mapping, Optional


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, quiet: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            quiet: If True, print nothing but errors; only the tools'
                own output reaches the terminal
        """
        self.debug = debug
        self.quiet = quiet

    def _out(self, message: str = "") -> None:
        if not self.quiet:
            # flush so our lines land before the child process writes
            print(message, flush=True)

    def print_run_started(
        self,
        pipeline: str,
        repo_root: str,
        step_count: int,
    ) -> None:
        """Print run start information."""
        self._out("\nRUN STARTED")
        self._out(f"Pipeline: {pipeline}")
        self._out(f"Repository: {repo_root}")
        self._out(f"Steps: {step_count}")
        self._out()

    def print_job_start(self, name: str) -> None:
        """Print job start message."""
        self._out(f"\nJOB STARTED: {name}")

    def print_step(self, name: str, cmd: str, env: Optional[Mapping[str, str]] = None) -> None:
        """Print step start message."""
        self._out(f"STEP: {name}")
        overrides = " ".join(f"{k}={v}" for k, v in (env or {}).items())
        self._out(f"$ {overrides + ' ' if overrides else ''}{cmd}")

    def print_success(self, name: str) -> None:
        self._out("STATUS: success")

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Step name
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
        """
        self._out(f"STEP FAILED: {name}")
        if exit_code is not None:
            self._out(f"Exit code: {exit_code}")
        if hint:
            self._out(f"Hint: {hint}")
        if self.debug:
            self._out(f"Error details: {reason}")

    def print_step_skipped(self, name: str, reason: str) -> None:
        self._out(f"STEP SKIPPED: {name} ({reason})")

    def print_plan_step(
        self,
        index: int,
        name: str,
        cmd: str,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> None:
        """Print one step of a dry-run plan."""
        print(f"  {index}. {name}")
        print(f"     $ {cmd}")
        for key, value in (env or {}).items():
            print(f"     env {key}={value}")
        if cwd:
            print(f"     cwd {cwd}")

    def print_results(self, results: dict[str, str]) -> None:
        """Print final results summary."""
        self._out("\n" + "=" * 40)
        self._out("RESULTS")
        self._out("=" * 40)
        for step, status in results.items():
            status_display = status.upper() if status != "ok" else "SUCCESS"
            self._out(f"  {step}: {status_display}")

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Errors are printed even in quiet mode.
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        self._out(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
