"""Install dispatch: run one package manager in one directory.

Rules:
- The directory is passed to the runner as `cwd`; the process-wide current
  directory is never touched.
- Failures come back as `InstallOutcome(status=FAILED)`. No exception raised
  by the runner escapes `install`, so one directory cannot abort its siblings.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from adapters.process_runner import run_command
from core.domain.models import (
    Classification,
    InstallMode,
    InstallOutcome,
    InstallStatus,
    LockfileKind,
)
from core.interfaces.runner import CommandRunner, ProcessResult

logger = logging.getLogger(__name__)

_ERROR_TAIL_LINES = 20


def _error_detail(result: ProcessResult) -> str:
    text = result.stderr.strip() or result.stdout.strip()
    if not text:
        return f"exited with code {result.returncode}"
    lines = text.splitlines()[-_ERROR_TAIL_LINES:]
    return "\n".join(lines)


class InstallDispatcher:
    def __init__(
        self,
        *,
        root: Path | None = None,
        runner: CommandRunner = run_command,
        timeout_seconds: float | None = None,
    ) -> None:
        self._root = root or Path.cwd()
        self._runner = runner
        self._timeout = timeout_seconds

    async def install(
        self,
        directory: str,
        kind: LockfileKind,
        mode: InstallMode,
        *,
        detected: tuple[LockfileKind, ...] = (),
        resolved_ambiguity: bool = False,
        root: Path | None = None,
    ) -> InstallOutcome:
        command = kind.command(mode)
        cwd = (root or self._root) / directory
        started = time.perf_counter()
        logger.debug("installing %s in %s", " ".join(command), cwd)

        exit_code: int | None = None
        error: str | None = None
        try:
            result = await self._runner(command, cwd=cwd, timeout=self._timeout)
        except OSError as exc:
            error = str(exc) or exc.__class__.__name__
        except Exception as exc:
            logger.warning("unexpected error running %s in %s", " ".join(command), cwd, exc_info=True)
            error = f"{exc.__class__.__name__}: {exc}"
        else:
            exit_code = result.returncode
            if not result.ok:
                error = _error_detail(result)

        return InstallOutcome(
            directory=directory,
            status=InstallStatus.FAILED if error is not None else InstallStatus.SUCCEEDED,
            detected=detected or (kind,),
            kind=kind,
            command=command,
            resolved_ambiguity=resolved_ambiguity,
            exit_code=exit_code,
            error=error,
            duration_seconds=round(time.perf_counter() - started, 3),
        )

    @staticmethod
    def skip(directory: str, classification: Classification, status: InstallStatus) -> InstallOutcome:
        """Outcome for a directory where no command runs."""

        if status not in (InstallStatus.SKIPPED_NO_LOCKFILE, InstallStatus.SKIPPED_AMBIGUOUS):
            raise ValueError(f"{status.value} is not a skip status")
        return InstallOutcome(
            directory=directory,
            status=status,
            detected=classification.kinds,
        )
