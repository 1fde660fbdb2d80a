"""Revision diff: which lockfiles changed between two revisions."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Iterable

from core.domain.models import LOCKFILE_NAMES, ChangeSet, RevisionRange
from core.errors import EnvironmentCheckError, EnvironmentFailure, InternalError
from core.interfaces.vcs import VersionControl

logger = logging.getLogger(__name__)


def normalize_lockfile_path(path: str, *, strip_components: int = 0) -> str:
    """Drop `strip_components` leading directories from a changed path.

    The filename itself can never be stripped; such a path is malformed for
    the configured layout and raises `InternalError`.
    """

    parts = PurePosixPath(path.replace("\\", "/")).parts
    if len(parts) <= strip_components:
        raise InternalError(
            f"cannot strip {strip_components} leading components from {path!r}"
        )
    return PurePosixPath(*parts[strip_components:]).as_posix()


def filter_lockfiles(paths: Iterable[str], *, strip_components: int = 0) -> list[str]:
    """Keep lockfile paths only, renormalized, in input order (duplicates kept)."""

    kept: list[str] = []
    for path in paths:
        if PurePosixPath(path).name not in LOCKFILE_NAMES:
            continue
        kept.append(normalize_lockfile_path(path, strip_components=strip_components))
    return kept


def derive_targets(change_set: ChangeSet) -> list[str]:
    """Distinct containing directories, in first-seen order.

    A lockfile at the repository root maps to `"."`.
    """

    directories = (PurePosixPath(path).parent.as_posix() for path in change_set.paths)
    return list(dict.fromkeys(directories))


class RevisionDiffer:
    """Wraps the version-control collaborator for one two-point comparison."""

    def __init__(self, vcs: VersionControl, *, strip_components: int = 0) -> None:
        self._vcs = vcs
        self._strip_components = strip_components

    def check_environment(self, revision_range: RevisionRange) -> None:
        """Raise `EnvironmentCheckError` for the first failing precondition."""

        if not self._vcs.is_available():
            raise EnvironmentCheckError(EnvironmentFailure.BINARY_MISSING)
        if not self._vcs.is_inside_work_tree():
            raise EnvironmentCheckError(EnvironmentFailure.NOT_A_REPOSITORY)
        base = revision_range.effective_base
        if not self._vcs.revision_exists(base):
            raise EnvironmentCheckError(EnvironmentFailure.INSUFFICIENT_HISTORY, base)
        if not self._vcs.revision_exists(revision_range.head):
            raise EnvironmentCheckError(EnvironmentFailure.INSUFFICIENT_HISTORY, revision_range.head)

    def work_tree_root(self) -> Path | None:
        """Directory the change set paths are relative to.

        None once leading components are stripped: such paths are resolved
        against the directory the run was started from.
        """

        if self._strip_components:
            return None
        return self._vcs.toplevel()

    def changed_lockfiles(self, revision_range: RevisionRange) -> ChangeSet:
        """Diff without re-running the environment checks."""

        raw = self._vcs.changed_paths(revision_range.effective_base, revision_range.head)
        logger.debug("%d changed paths in %s", len(raw), revision_range.label())
        return ChangeSet(paths=tuple(filter_lockfiles(raw, strip_components=self._strip_components)))

    def diff(self, revision_range: RevisionRange) -> ChangeSet:
        self.check_environment(revision_range)
        return self.changed_lockfiles(revision_range)
