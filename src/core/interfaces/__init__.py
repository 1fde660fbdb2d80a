"""Core interfaces/abstractions.

Why:
- Defines the contracts (Protocol) that concrete adapters implement.
- The core depends on these abstractions, so tests can swap git and the
  package managers for in-memory fakes.
"""

from core.interfaces.runner import CommandRunner, ProcessResult
from core.interfaces.vcs import VersionControl

__all__ = [
    "CommandRunner",
    "ProcessResult",
    "VersionControl",
]
