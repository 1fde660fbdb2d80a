"""Lockfile sync orchestration.

This module drives the whole run: environment check, diff, target
derivation, concurrent classify+install per directory, and aggregation into
a `RunReport`. Side-effects for the user (printing, progress) stay out of
here; UI layers subscribe through `PipelineHooks`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from adapters.git_client import GitClient
from core.config import AppSettings
from core.domain.models import (
    ChangeSet,
    Classification,
    ClassificationState,
    InstallMode,
    InstallOutcome,
    InstallStatus,
    RevisionRange,
    RunReport,
)
from core.errors import EnvironmentCheckError, InternalError
from core.services.install_dispatcher import InstallDispatcher
from core.services.lockfile_classifier import LockfileClassifier
from core.services.revision_differ import RevisionDiffer, derive_targets

logger = logging.getLogger(__name__)


@dataclass
class SyncRequest:
    """Parameters that control one sync run."""

    revision_range: RevisionRange = field(default_factory=RevisionRange)
    strict: bool = False
    mode: InstallMode = InstallMode.NORMAL
    max_concurrency: int = 4

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "SyncRequest":
        return cls(
            revision_range=RevisionRange(
                head=settings.head_revision,
                base=settings.base_revision or "",
            ),
            strict=settings.strict,
            mode=InstallMode.from_flag(settings.clean),
            max_concurrency=settings.max_concurrency,
        )


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, warnings)."""

    environment_ok: Callable[[RevisionRange], None] | None = None
    changes_found: Callable[[ChangeSet, list[str]], None] | None = None
    target_classified: Callable[[str, Classification], None] | None = None
    outcome: Callable[[InstallOutcome], None] | None = None
    warning: Callable[[str], None] | None = None


class SyncOrchestrator:
    """Runs the five phases of a sync: check, diff, derive, dispatch, aggregate."""

    def __init__(
        self,
        *,
        differ: RevisionDiffer,
        classifier: LockfileClassifier,
        dispatcher: InstallDispatcher,
    ) -> None:
        self._differ = differ
        self._classifier = classifier
        self._dispatcher = dispatcher

    async def run(self, request: SyncRequest, hooks: PipelineHooks | None = None) -> RunReport:
        hooks = hooks or PipelineHooks()
        revision_range = request.revision_range
        warnings: list[str] = []

        def warn(message: str) -> None:
            warnings.append(message)
            if hooks.warning:
                hooks.warning(message)

        try:
            self._differ.check_environment(revision_range)
        except EnvironmentCheckError as exc:
            logger.debug("environment check failed: %s", exc.failure.value)
            return RunReport(
                revision_range=revision_range,
                strict=request.strict,
                mode=request.mode,
                environment_error=str(exc),
            )
        # None falls back to the roots the classifier and dispatcher were built with.
        root = self._differ.work_tree_root()

        if hooks.environment_ok:
            hooks.environment_ok(revision_range)

        change_set = self._differ.changed_lockfiles(revision_range)
        if not change_set:
            return RunReport(
                revision_range=revision_range,
                strict=request.strict,
                mode=request.mode,
            )

        targets = derive_targets(change_set)
        if hooks.changes_found:
            hooks.changes_found(change_set, targets)

        sem = asyncio.Semaphore(max(1, request.max_concurrency))

        async def process(directory: str) -> InstallOutcome:
            classification = self._classifier.classify(directory, root=root)
            if hooks.target_classified:
                hooks.target_classified(directory, classification)

            state = classification.state
            resolved_ambiguity = False
            if state is ClassificationState.NONE:
                warn(f'No lockfiles found in "{directory}"')
                outcome = self._dispatcher.skip(
                    directory, classification, InstallStatus.SKIPPED_NO_LOCKFILE
                )
            elif state is ClassificationState.MULTIPLE and request.strict:
                warn(f'Multiple lockfiles found in "{directory}", skipping install')
                outcome = self._dispatcher.skip(
                    directory, classification, InstallStatus.SKIPPED_AMBIGUOUS
                )
            else:
                kind = classification.resolve()
                if kind is None:
                    raise InternalError(f"no lockfile kind to install in {directory!r}")
                if state is ClassificationState.MULTIPLE:
                    resolved_ambiguity = True
                    found = ", ".join(k.lockfile for k in classification.kinds)
                    warn(f'Multiple lockfiles found in "{directory}" ({found}), using {kind.value}')
                async with sem:
                    outcome = await self._dispatcher.install(
                        directory,
                        kind,
                        request.mode,
                        detected=classification.kinds,
                        resolved_ambiguity=resolved_ambiguity,
                        root=root,
                    )

            if hooks.outcome:
                hooks.outcome(outcome)
            return outcome

        outcomes = await asyncio.gather(*(process(directory) for directory in targets))

        return RunReport(
            revision_range=revision_range,
            strict=request.strict,
            mode=request.mode,
            changed_paths=change_set.paths,
            targets=tuple(targets),
            outcomes=tuple(outcomes),
            warnings=tuple(warnings),
        )


def build_orchestrator(settings: AppSettings, *, root: Path | None = None) -> SyncOrchestrator:
    """Wire the real git and process adapters, started from `root` (defaults to cwd).

    Targets resolve against the work-tree top level that git reports for `root`.
    """

    root = root or Path.cwd()
    return SyncOrchestrator(
        differ=RevisionDiffer(
            GitClient(settings, repo_root=root),
            strip_components=settings.path_strip_components,
        ),
        classifier=LockfileClassifier(root),
        dispatcher=InstallDispatcher(
            root=root,
            timeout_seconds=settings.install_timeout_seconds,
        ),
    )


async def sync_lockfiles(
    *,
    settings: AppSettings,
    request: SyncRequest | None = None,
    root: Path | None = None,
    hooks: PipelineHooks | None = None,
) -> RunReport:
    request = request or SyncRequest.from_settings(settings)
    orchestrator = build_orchestrator(settings, root=root)
    return await orchestrator.run(request, hooks)
