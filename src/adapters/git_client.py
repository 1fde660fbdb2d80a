"""Git adapter (subprocess).

Why a wrapper:
- Keeps every git invocation (binary name, cwd, output decoding) in one place.
- Implements `core.interfaces.vcs.VersionControl`, so the core never imports
  `subprocess` for git.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from core.config import AppSettings
from core.errors import InternalError
from core.interfaces.vcs import VersionControl

logger = logging.getLogger(__name__)


class GitClient(VersionControl):
    """Runs git against the work tree that contains `repo_root`."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        repo_root: Path | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._repo_root = repo_root or Path.cwd()

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        argv = [self._settings.git_binary, *args]
        logger.debug("running %s in %s", " ".join(argv), self._repo_root)
        return subprocess.run(
            argv,
            cwd=self._repo_root,
            check=False,
            capture_output=True,
            encoding="utf-8",
            errors="surrogateescape",
        )

    def _succeeds(self, args: list[str]) -> bool:
        try:
            completed = self._run(args)
        except OSError as exc:
            logger.debug("git %s could not start: %s", args[0], exc)
            return False
        return completed.returncode == 0

    def is_available(self) -> bool:
        return self._succeeds(["--version"])

    def version(self) -> str | None:
        try:
            completed = self._run(["--version"])
        except OSError:
            return None
        if completed.returncode != 0:
            return None
        return completed.stdout.strip() or None

    def is_inside_work_tree(self) -> bool:
        return self._succeeds(["rev-parse", "--is-inside-work-tree"])

    def revision_exists(self, revision: str) -> bool:
        return self._succeeds(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"])

    def toplevel(self) -> Path | None:
        try:
            completed = self._run(["rev-parse", "--show-toplevel"])
        except OSError:
            return None
        if completed.returncode != 0 or not completed.stdout.strip():
            return None
        return Path(completed.stdout.strip())

    def changed_paths(self, base: str, head: str) -> list[str]:
        try:
            # -z output is NUL-separated and never C-quoted.
            completed = self._run(
                ["-c", "core.quotePath=false", "diff", "--name-only", "-z", base, head]
            )
        except OSError as exc:
            raise InternalError(f"git diff could not start: {exc}") from exc
        if completed.returncode != 0:
            raise InternalError(completed.stderr.strip() or "git diff failed")
        return [path for path in completed.stdout.split("\0") if path]
