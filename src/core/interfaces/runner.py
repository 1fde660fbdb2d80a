"""Process-runner contract for the package managers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured output of one external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Runs `argv` with `cwd` as its working directory.

    Rules:
    - `cwd` is handed to the spawned process; implementations must never
      change the current directory of this process.
    - Spawn problems raise `OSError`; a timeout raises `TimeoutError`.
    """

    async def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
    ) -> ProcessResult:
        ...
