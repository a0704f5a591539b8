# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Step:
    """A single command (step) inside a grading job."""
    name: str
    run: str
    cwd: str | None = None

    # Environment overrides visible to this step's process only
    env: Dict[str, str] = field(default_factory=dict)

    # Typed steps ("lint", "test", "fuzz"); None means plain shell
    kind: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


@dataclass
class Job:
    """
    A grading job: an ordered list of steps run one after another.

    `env` applies to every step; a step's own `env` wins on conflicts.
    """
    name: str
    steps: list[Step]

    env: Dict[str, str] = field(default_factory=dict)
    requires: list[str] = field(default_factory=list)
