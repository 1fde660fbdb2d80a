from __future__ import annotations

import asyncio

import pytest

from core.domain.models import (
    Classification,
    InstallMode,
    InstallOutcome,
    InstallStatus,
    LockfileKind,
    RevisionRange,
    RunReport,
)
from core.errors import InternalError
from core.interfaces.runner import ProcessResult
from core.services.install_dispatcher import InstallDispatcher
from core.services.lockfile_classifier import LockfileClassifier
from core.services.revision_differ import RevisionDiffer
from core.services.sync_pipeline import PipelineHooks, SyncOrchestrator, SyncRequest


def _orchestrator(root, vcs, runner, *, strip_components: int = 0) -> SyncOrchestrator:
    return SyncOrchestrator(
        differ=RevisionDiffer(vcs, strip_components=strip_components),
        classifier=LockfileClassifier(root),
        dispatcher=InstallDispatcher(root=root, runner=runner),
    )


def _run(orchestrator: SyncOrchestrator, **kwargs) -> RunReport:
    hooks = kwargs.pop("hooks", None)
    return asyncio.run(orchestrator.run(SyncRequest(**kwargs), hooks))


def test_single_npm_directory_is_installed(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "pkgs/a", "package-lock.json")
    fake_vcs.paths = ["pkgs/a/package-lock.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner))

    assert len(report.outcomes) == 1
    outcome = report.outcomes[0]
    assert outcome.directory == "pkgs/a"
    assert outcome.kind is LockfileKind.NPM
    assert outcome.command == ("npm", "install")
    assert outcome.status is InstallStatus.SUCCEEDED
    assert report.exit_code == 0
    assert fake_runner.calls[0][1] == tmp_path / "pkgs" / "a"


def test_empty_change_set_finishes_without_installs(tmp_path, fake_vcs, fake_runner) -> None:
    fake_vcs.paths = ["src/index.ts", "package.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=True)

    assert report.outcomes == ()
    assert report.exit_code == 0
    assert report.message == "No lockfile changes found"
    assert fake_runner.calls == []


@pytest.mark.parametrize(("strict", "exit_code"), [(False, 0), (True, 1)])
def test_single_commit_repository(tmp_path, fake_vcs, fake_runner, strict, exit_code) -> None:
    fake_vcs.revisions = {"HEAD"}

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=strict)

    assert report.environment_error is not None
    assert "one commit" in report.environment_error
    assert report.exit_code == exit_code
    assert fake_vcs.diff_calls == []


@pytest.mark.parametrize("strict", [False, True])
def test_deleted_lockfile_is_skipped_not_failed(tmp_path, fake_vcs, fake_runner, strict) -> None:
    (tmp_path / "pkgs" / "gone").mkdir(parents=True)
    fake_vcs.paths = ["pkgs/gone/yarn.lock"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=strict)

    assert [o.status for o in report.outcomes] == [InstallStatus.SKIPPED_NO_LOCKFILE]
    assert report.exit_code == 0
    assert fake_runner.calls == []


def test_two_lockfiles_in_one_directory_strict_skips(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "web", "yarn.lock", "package-lock.json")
    fake_vcs.paths = ["web/yarn.lock", "web/package-lock.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=True)

    assert report.targets == ("web",)
    (outcome,) = report.outcomes
    assert outcome.status is InstallStatus.SKIPPED_AMBIGUOUS
    assert outcome.command is None
    assert report.exit_code == 1
    assert fake_runner.calls == []


def test_two_lockfiles_in_one_directory_non_strict_resolves(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "web", "yarn.lock", "package-lock.json")
    fake_vcs.paths = ["web/yarn.lock", "web/package-lock.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner))

    (outcome,) = report.outcomes
    assert outcome.status is InstallStatus.SUCCEEDED
    assert outcome.kind is LockfileKind.YARN
    assert outcome.resolved_ambiguity is True
    assert outcome.detected == (LockfileKind.NPM, LockfileKind.YARN)
    assert [call[0] for call in fake_runner.calls] == [("yarn", "install")]
    assert any("Multiple lockfiles" in w for w in report.warnings)


def test_npm_and_pnpm_resolve_to_pnpm(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "app", "package-lock.json", "pnpm-lock.yaml")
    fake_vcs.paths = ["app/package-lock.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), mode=InstallMode.CLEAN)

    assert report.outcomes[0].command == ("pnpm", "install", "--frozen-lockfile")


def test_failure_is_isolated_from_siblings(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    lockfiles(tmp_path, "b", "yarn.lock")
    fake_vcs.paths = ["a/package-lock.json", "b/yarn.lock"]
    fake_runner.behaviour["a"] = ProcessResult(returncode=1, stderr="boom")
    # "b" finishes before "a" fails.
    fake_runner.delays["a"] = 0.05

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner))

    statuses = {o.directory: o.status for o in report.outcomes}
    assert statuses == {"a": InstallStatus.FAILED, "b": InstallStatus.SUCCEEDED}
    assert [o.directory for o in report.outcomes] == ["a", "b"]
    assert report.exit_code == 0


def test_strict_failure_exits_one(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    lockfiles(tmp_path, "b", "yarn.lock")
    fake_vcs.paths = ["a/package-lock.json", "b/yarn.lock"]
    fake_runner.behaviour["b"] = FileNotFoundError("'yarn' not found on PATH")

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=True)

    assert [o.status for o in report.outcomes] == [InstallStatus.SUCCEEDED, InstallStatus.FAILED]
    assert report.exit_code == 1


def test_report_order_follows_derivation_not_completion(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    for name in ("c", "a", "b"):
        lockfiles(tmp_path, name, "pnpm-lock.yaml")
    fake_vcs.paths = ["c/pnpm-lock.yaml", "a/pnpm-lock.yaml", "b/pnpm-lock.yaml"]
    fake_runner.delays.update({"c": 0.06, "a": 0.03})
    completed: list[str] = []

    report = _run(
        _orchestrator(tmp_path, fake_vcs, fake_runner),
        hooks=PipelineHooks(outcome=lambda o: completed.append(o.directory)),
    )

    assert [o.directory for o in report.outcomes] == ["c", "a", "b"]
    assert completed == ["b", "a", "c"]


def test_repeated_runs_classify_identically(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    lockfiles(tmp_path, "b", "yarn.lock", "pnpm-lock.yaml")
    (tmp_path / "c").mkdir()
    fake_vcs.paths = ["a/package-lock.json", "b/yarn.lock", "c/yarn.lock"]
    orchestrator = _orchestrator(tmp_path, fake_vcs, fake_runner)

    first = _run(orchestrator)
    second = _run(orchestrator)

    def summary(report) -> list[tuple[str, InstallStatus, LockfileKind | None]]:
        return [(o.directory, o.status, o.kind) for o in report.outcomes]

    assert summary(first) == summary(second)
    assert set(first.targets) == set(second.targets) == {"a", "b", "c"}


def test_max_concurrency_bounds_parallel_installs(tmp_path, fake_vcs, lockfiles) -> None:
    for name in ("a", "b", "c", "d"):
        lockfiles(tmp_path, name, "yarn.lock")
    fake_vcs.paths = [f"{name}/yarn.lock" for name in ("a", "b", "c", "d")]
    running = 0
    peak = 0

    async def runner(argv, *, cwd, timeout=None) -> ProcessResult:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return ProcessResult(returncode=0)

    report = _run(_orchestrator(tmp_path, fake_vcs, runner), max_concurrency=2)

    assert peak == 2
    assert all(o.status is InstallStatus.SUCCEEDED for o in report.outcomes)


def test_hooks_receive_every_phase(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    fake_vcs.paths = ["a/package-lock.json"]
    events: list[str] = []

    hooks = PipelineHooks(
        environment_ok=lambda r: events.append(f"env:{r.label()}"),
        changes_found=lambda cs, targets: events.append(f"changes:{len(cs)}:{targets}"),
        target_classified=lambda d, c: events.append(f"classified:{d}:{c.state.value}"),
        outcome=lambda o: events.append(f"outcome:{o.status.value}"),
    )
    _run(_orchestrator(tmp_path, fake_vcs, fake_runner), hooks=hooks)

    assert events == [
        "env:HEAD~1..HEAD",
        "changes:1:['a']",
        "classified:a:single",
        "outcome:succeeded",
    ]


def test_malformed_path_is_fatal(tmp_path, fake_vcs, fake_runner) -> None:
    fake_vcs.paths = ["yarn.lock"]

    with pytest.raises(InternalError):
        _run(_orchestrator(tmp_path, fake_vcs, fake_runner, strip_components=2))


def test_revision_range_is_passed_through(tmp_path, fake_vcs, fake_runner) -> None:
    fake_vcs.revisions = {"origin/main", "HEAD"}

    report = _run(
        _orchestrator(tmp_path, fake_vcs, fake_runner),
        revision_range=RevisionRange(base="origin/main"),
    )

    assert fake_vcs.diff_calls == [("origin/main", "HEAD")]
    assert report.revision_range.base == "origin/main"


def test_outcomes_are_immutable(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    fake_vcs.paths = ["a/package-lock.json"]

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner))

    assert isinstance(report.outcomes[0], InstallOutcome)
    with pytest.raises(Exception):
        report.outcomes[0].status = InstallStatus.FAILED  # type: ignore[misc]


def test_unexpected_runner_error_does_not_cancel_siblings(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    lockfiles(tmp_path, "b", "yarn.lock")
    fake_vcs.paths = ["a/package-lock.json", "b/yarn.lock"]
    fake_runner.behaviour["a"] = RuntimeError("runner exploded")
    fake_runner.delays["b"] = 0.02

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner), strict=True)

    statuses = {o.directory: o.status for o in report.outcomes}
    assert statuses == {"a": InstallStatus.FAILED, "b": InstallStatus.SUCCEEDED}
    assert report.exit_code == 1


def test_unresolvable_classification_raises_internal_error(
    tmp_path, fake_vcs, fake_runner, lockfiles, monkeypatch
) -> None:
    lockfiles(tmp_path, "a", "package-lock.json")
    fake_vcs.paths = ["a/package-lock.json"]
    monkeypatch.setattr(Classification, "resolve", lambda self: None)

    with pytest.raises(InternalError, match="no lockfile kind"):
        _run(_orchestrator(tmp_path, fake_vcs, fake_runner))

    assert fake_runner.calls == []


def test_targets_resolve_against_work_tree_top_level(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "web/app", "package-lock.json")
    fake_vcs.paths = ["web/app/package-lock.json"]
    fake_vcs.root = tmp_path
    started_in = tmp_path / "web"

    report = _run(_orchestrator(started_in, fake_vcs, fake_runner))

    (outcome,) = report.outcomes
    assert outcome.directory == "web/app"
    assert outcome.status is InstallStatus.SUCCEEDED
    assert fake_runner.calls[0][1] == tmp_path / "web" / "app"


def test_stripped_paths_resolve_against_start_directory(tmp_path, fake_vcs, fake_runner, lockfiles) -> None:
    lockfiles(tmp_path, "app", "package-lock.json")
    fake_vcs.paths = ["mono/repo/app/package-lock.json"]
    fake_vcs.root = tmp_path / "elsewhere"

    report = _run(_orchestrator(tmp_path, fake_vcs, fake_runner, strip_components=2))

    assert report.outcomes[0].status is InstallStatus.SUCCEEDED
    assert fake_runner.calls[0][1] == tmp_path / "app"
