"""Lockfile classification of a target directory."""

from __future__ import annotations

from pathlib import Path

from core.domain.models import Classification, LockfileKind


class LockfileClassifier:
    """Reports which lockfile kinds exist in a directory under `root`."""

    def __init__(self, root: Path | None = None) -> None:
        self._root = root or Path.cwd()

    def classify(self, directory: str, *, root: Path | None = None) -> Classification:
        base = (root or self._root) / directory
        # Every kind is checked so that several lockfiles can be detected.
        found = [kind for kind in LockfileKind if (base / kind.lockfile).is_file()]
        return Classification(kinds=tuple(found))
