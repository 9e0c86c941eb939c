"""FormPolicy — per-template behaviour that is configuration, not code.

Currently one policy exists: *locked after first submission*.  Templates
listed under ``locked_slugs`` (the baseline evaluations) accept exactly
one response per patient; afterwards the controller serves a read-only
view and refuses re-submission.

Policy file format (YAML)::

    locked_slugs:
      - baseline_0_2

Usage::

    policy = load_form_policy("config/form_policy.yaml")
    policy.is_locked("baseline_0_2")  # True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from nutriforms.constants import DEFAULT_LOCKED_SLUGS

logger = logging.getLogger(__name__)


def find_repo_root(start: Optional[Path] = None) -> Path:
    """Walk upwards from *start* to find the repo root (dir with pyproject.toml or .git).

    Falls back to cwd if no marker is found.
    """
    p = (start or Path(__file__).resolve()).parent
    for parent in [p, *p.parents]:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return Path.cwd()


def load_yaml(path: Path | str) -> Any:
    """Load a single YAML file and return the parsed contents."""
    if isinstance(path, str):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing YAML file: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


@dataclass(frozen=True)
class FormPolicy:
    """Immutable template policy handed to the controller."""

    locked_slugs: frozenset[str] = field(default_factory=lambda: DEFAULT_LOCKED_SLUGS)

    def is_locked(self, slug: str) -> bool:
        """True if *slug* becomes read-only once a response exists."""
        return slug in self.locked_slugs


def load_form_policy(path: Path | str | None = None) -> FormPolicy:
    """Build a ``FormPolicy`` from a YAML file.

    With no *path*, ``config/form_policy.yaml`` under the repo root is used
    when present; otherwise the env-driven defaults apply.
    """
    if path is None:
        candidate = find_repo_root() / "config" / "form_policy.yaml"
        if not candidate.exists():
            logger.info("No policy file found, using default locked slugs")
            return FormPolicy()
        path = candidate

    raw = load_yaml(path) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Policy file {path} must contain a mapping")
    slugs = raw.get("locked_slugs")
    if slugs is None:
        return FormPolicy()
    if not isinstance(slugs, list) or not all(isinstance(s, str) for s in slugs):
        raise ValueError(f"'locked_slugs' in {path} must be a list of strings")

    policy = FormPolicy(locked_slugs=frozenset(slugs))
    logger.info("FormPolicy loaded: %d locked slugs", len(policy.locked_slugs))
    return policy
