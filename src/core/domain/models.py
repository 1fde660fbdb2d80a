"""Domain models (Pydantic v2).

Why pydantic here:
- Frozen models give the immutability the pipeline relies on: a range, a
  change set or an outcome is never edited after creation.
- `model_dump(mode="json")` gives the report exporter a stable payload for free.

These models describe *what* a run produced, not *how* git or the package
managers were invoked.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LockfileKind(str, Enum):
    """Supported dependency managers, in declaration order."""

    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"

    @property
    def lockfile(self) -> str:
        return _LOCKFILES[self]

    @classmethod
    def from_lockfile(cls, filename: str) -> "LockfileKind | None":
        for kind, name in _LOCKFILES.items():
            if name == filename:
                return kind
        return None

    def command(self, mode: "InstallMode") -> tuple[str, ...]:
        """argv for this manager in the given mode."""

        return _COMMANDS[self][mode]


class InstallMode(str, Enum):
    """`CLEAN` refuses to touch the lockfile (CI style), `NORMAL` may update it."""

    NORMAL = "normal"
    CLEAN = "clean"

    @classmethod
    def from_flag(cls, clean: bool) -> "InstallMode":
        return cls.CLEAN if clean else cls.NORMAL


_LOCKFILES: dict[LockfileKind, str] = {
    LockfileKind.NPM: "package-lock.json",
    LockfileKind.PNPM: "pnpm-lock.yaml",
    LockfileKind.YARN: "yarn.lock",
}

_COMMANDS: dict[LockfileKind, dict[InstallMode, tuple[str, ...]]] = {
    LockfileKind.NPM: {
        InstallMode.NORMAL: ("npm", "install"),
        InstallMode.CLEAN: ("npm", "ci"),
    },
    LockfileKind.PNPM: {
        InstallMode.NORMAL: ("pnpm", "install"),
        InstallMode.CLEAN: ("pnpm", "install", "--frozen-lockfile"),
    },
    LockfileKind.YARN: {
        InstallMode.NORMAL: ("yarn", "install"),
        InstallMode.CLEAN: ("yarn", "install", "--frozen-lockfile"),
    },
}

LOCKFILE_NAMES: frozenset[str] = frozenset(_LOCKFILES.values())

# Used only when one directory holds several lockfiles and the run is not strict.
RESOLUTION_PRIORITY: tuple[LockfileKind, ...] = (
    LockfileKind.PNPM,
    LockfileKind.YARN,
    LockfileKind.NPM,
)


class RevisionRange(BaseModel):
    """Two-point comparison `base..head`."""

    model_config = ConfigDict(frozen=True)

    head: str = Field(default="HEAD", min_length=1, description="Newer revision.")
    base: str = Field(
        default="",
        description="Older revision; empty means one revision before `head`.",
    )

    @property
    def effective_base(self) -> str:
        return self.base or f"{self.head}~1"

    def label(self) -> str:
        return f"{self.effective_base}..{self.head}"


class ChangeSet(BaseModel):
    """Lockfile paths changed between two revisions, in git's order."""

    model_config = ConfigDict(frozen=True)

    paths: tuple[str, ...] = Field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.paths)

    def __bool__(self) -> bool:
        return bool(self.paths)


class ClassificationState(str, Enum):
    NONE = "none"
    SINGLE = "single"
    MULTIPLE = "multiple"


class Classification(BaseModel):
    """Lockfile kinds found in one directory, in declaration order."""

    model_config = ConfigDict(frozen=True)

    kinds: tuple[LockfileKind, ...] = Field(default_factory=tuple)

    @property
    def state(self) -> ClassificationState:
        if not self.kinds:
            return ClassificationState.NONE
        if len(self.kinds) == 1:
            return ClassificationState.SINGLE
        return ClassificationState.MULTIPLE

    def resolve(self) -> LockfileKind | None:
        """Pick the single kind to install with.

        A single match is returned as is; several matches go through
        `RESOLUTION_PRIORITY`.
        """

        if not self.kinds:
            return None
        if len(self.kinds) == 1:
            return self.kinds[0]
        for kind in RESOLUTION_PRIORITY:
            if kind in self.kinds:
                return kind
        return None


class InstallStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED_NO_LOCKFILE = "skipped_no_lockfile"
    SKIPPED_AMBIGUOUS = "skipped_ambiguous"


class InstallOutcome(BaseModel):
    """Result of handling one target directory. Created once, never revised."""

    model_config = ConfigDict(frozen=True)

    directory: str = Field(..., min_length=1, description="Target directory, as derived from the diff.")
    status: InstallStatus
    detected: tuple[LockfileKind, ...] = Field(
        default_factory=tuple,
        description="Every lockfile kind present in the directory.",
    )
    kind: LockfileKind | None = Field(default=None, description="Kind actually installed with.")
    command: tuple[str, ...] | None = Field(default=None, description="argv that was run.")
    resolved_ambiguity: bool = Field(
        default=False,
        description="True when `kind` was picked among several detected kinds.",
    )
    exit_code: int | None = None
    error: str | None = Field(default=None, description="Captured error detail when failed.")
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def command_line(self) -> str:
        return " ".join(self.command) if self.command else ""

    @property
    def is_failure(self) -> bool:
        return self.status is InstallStatus.FAILED


class RunReport(BaseModel):
    """Everything a run produced, plus the verdict derived from it."""

    model_config = ConfigDict(frozen=True)

    revision_range: RevisionRange = Field(default_factory=RevisionRange)
    strict: bool = False
    mode: InstallMode = InstallMode.NORMAL
    changed_paths: tuple[str, ...] = Field(default_factory=tuple)
    targets: tuple[str, ...] = Field(default_factory=tuple)
    outcomes: tuple[InstallOutcome, ...] = Field(default_factory=tuple)
    warnings: tuple[str, ...] = Field(default_factory=tuple)
    environment_error: str | None = Field(
        default=None,
        description="Why the environment check stopped the run, if it did.",
    )

    @property
    def failures(self) -> list[InstallOutcome]:
        return [o for o in self.outcomes if o.status is InstallStatus.FAILED]

    @property
    def ambiguous_skips(self) -> list[InstallOutcome]:
        return [o for o in self.outcomes if o.status is InstallStatus.SKIPPED_AMBIGUOUS]

    @property
    def success(self) -> bool:
        if not self.strict:
            return True
        if self.environment_error:
            return False
        return not self.failures and not self.ambiguous_skips

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def message(self) -> str:
        if self.environment_error:
            return self.environment_error
        if not self.changed_paths:
            return "No lockfile changes found"
        succeeded = sum(1 for o in self.outcomes if o.status is InstallStatus.SUCCEEDED)
        parts = [f"{succeeded}/{len(self.targets)} directories installed"]
        if self.failures:
            parts.append(f"{len(self.failures)} failed")
        skipped = len(self.outcomes) - succeeded - len(self.failures)
        if skipped:
            parts.append(f"{skipped} skipped")
        return ", ".join(parts)
