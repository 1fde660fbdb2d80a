"""Async process runner for the package managers.

Implements `core.interfaces.runner.CommandRunner` on top of
`asyncio.create_subprocess_exec`. The working directory is a spawn argument,
so any number of installs can run side by side.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Sequence

from core.interfaces.runner import ProcessResult

logger = logging.getLogger(__name__)


def resolve_executable(name: str) -> str:
    """Absolute path of `name` on PATH (handles `npm.cmd` on Windows).

    Raises `FileNotFoundError` when the binary is not installed.
    """

    found = shutil.which(name)
    if found is None:
        raise FileNotFoundError(f"{name!r} not found on PATH")
    return found


async def run_command(
    argv: Sequence[str],
    *,
    cwd: Path,
    timeout: float | None = None,
) -> ProcessResult:
    if not argv:
        raise ValueError("argv must not be empty")

    executable = resolve_executable(argv[0])
    logger.debug("spawning %s in %s", " ".join(argv), cwd)

    process = await asyncio.create_subprocess_exec(
        executable,
        *argv[1:],
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise TimeoutError(f"{' '.join(argv)} timed out after {timeout:g}s") from None

    return ProcessResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
