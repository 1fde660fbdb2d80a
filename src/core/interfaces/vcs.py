"""Version-control contract.

The core only consumes three yes/no checks and one diff listing; everything
else about git stays inside the adapter.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class VersionControl(Protocol):
    """Minimal contract for the version-control collaborator."""

    def is_available(self) -> bool:
        """True when the binary can be invoked."""

        ...

    def is_inside_work_tree(self) -> bool:
        ...

    def revision_exists(self, revision: str) -> bool:
        ...

    def toplevel(self) -> Path | None:
        """Root of the work tree; changed paths are relative to it."""

        ...

    def changed_paths(self, base: str, head: str) -> list[str]:
        """Repository-relative paths changed between `base` and `head`, in git's order."""

        ...
