"""Error taxonomy of the sync pipeline.

Only phase-level problems are exceptions. Per-directory install failures and
ambiguous lockfile layouts travel as data inside `InstallOutcome`.
"""

from __future__ import annotations

from enum import Enum


class EnvironmentFailure(str, Enum):
    """Reasons the environment check can stop a run."""

    BINARY_MISSING = "binary_missing"
    NOT_A_REPOSITORY = "not_a_repository"
    INSUFFICIENT_HISTORY = "insufficient_history"

    def describe(self) -> str:
        if self is EnvironmentFailure.BINARY_MISSING:
            return "No git binary found"
        if self is EnvironmentFailure.NOT_A_REPOSITORY:
            return "No git repository found"
        return "Base revision does not resolve (the repository probably has only one commit)"


class ClaiError(Exception):
    """Base class for every error raised by the pipeline."""


class EnvironmentCheckError(ClaiError):
    """Git is missing, the cwd is not a work tree, or the base revision is unknown."""

    def __init__(self, failure: EnvironmentFailure, detail: str | None = None) -> None:
        self.failure = failure
        self.detail = detail
        message = failure.describe()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class InternalError(ClaiError):
    """The pipeline's own invariants were violated (e.g. a malformed path)."""
