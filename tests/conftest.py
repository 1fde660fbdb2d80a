from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence

import pytest

from core.interfaces.runner import ProcessResult


@dataclass
class FakeVersionControl:
    """In-memory stand-in for `GitClient`."""

    available: bool = True
    work_tree: bool = True
    revisions: set[str] = field(default_factory=lambda: {"HEAD", "HEAD~1"})
    paths: list[str] = field(default_factory=list)
    root: Path | None = None
    diff_calls: list[tuple[str, str]] = field(default_factory=list)

    def is_available(self) -> bool:
        return self.available

    def is_inside_work_tree(self) -> bool:
        return self.work_tree

    def revision_exists(self, revision: str) -> bool:
        return revision in self.revisions

    def toplevel(self) -> Path | None:
        return self.root

    def changed_paths(self, base: str, head: str) -> list[str]:
        self.diff_calls.append((base, head))
        return list(self.paths)


@dataclass
class FakeRunner:
    """Records every invocation.

    `behaviour` maps a directory name to a result or an exception to raise;
    `delays` lets a test reorder completion.
    """

    behaviour: dict[str, ProcessResult | Exception] = field(default_factory=dict)
    calls: list[tuple[tuple[str, ...], Path, float | None]] = field(default_factory=list)
    delays: dict[str, float] = field(default_factory=dict)

    async def __call__(
        self,
        argv: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
    ) -> ProcessResult:
        self.calls.append((tuple(argv), cwd, timeout))
        delay = self.delays.get(cwd.name)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.behaviour.get(cwd.name, ProcessResult(returncode=0))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def write_lockfiles(root: Path, directory: str, *names: str) -> Path:
    target = root / directory
    target.mkdir(parents=True, exist_ok=True)
    for name in names:
        (target / name).write_text("{}\n", encoding="utf-8")
    return target


@pytest.fixture
def fake_vcs() -> FakeVersionControl:
    return FakeVersionControl()


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def lockfiles() -> Callable[..., Path]:
    return write_lockfiles
