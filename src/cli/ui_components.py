"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from presentation details.
- The same renderers serve the live hooks and the final summary.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import (
    ChangeSet,
    Classification,
    InstallOutcome,
    InstallStatus,
    RevisionRange,
    RunReport,
)
from core.services.sync_pipeline import PipelineHooks

_STATUS_STYLES: dict[InstallStatus, tuple[str, str]] = {
    InstallStatus.SUCCEEDED: ("✔", "green"),
    InstallStatus.FAILED: ("✘", "red"),
    InstallStatus.SKIPPED_NO_LOCKFILE: ("◼", "yellow"),
    InstallStatus.SKIPPED_AMBIGUOUS: ("⚠", "yellow"),
}


def print_banner(console: Console) -> None:
    title = Text("clai", style="bold cyan")
    subtitle = Text("Reinstall dependencies where lockfiles changed", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 4)))


def print_enabled_flags(console: Console, *, strict: bool, clean: bool) -> None:
    enabled = [name for name, on in (("ci", clean), ("strict", strict)) if on]
    if not enabled:
        return
    console.print("◼ Enabled flags:")
    for name in enabled:
        console.print(f"    ❯ {name}")


def format_outcome(outcome: InstallOutcome) -> Text:
    symbol, style = _STATUS_STYLES[outcome.status]
    text = Text(f"   {symbol} ", style=style)
    if outcome.status is InstallStatus.SUCCEEDED:
        text.append(f'Successfully ran "{outcome.command_line}" in "{outcome.directory}"')
    elif outcome.status is InstallStatus.FAILED:
        text.append(f'Failed to run "{outcome.command_line}" in "{outcome.directory}"')
        if outcome.error:
            text.append(f"\n{outcome.error}", style="dim")
    elif outcome.status is InstallStatus.SKIPPED_NO_LOCKFILE:
        text.append(f'No lockfiles found in "{outcome.directory}", skipped')
    else:
        text.append(f'Multiple lockfiles found in "{outcome.directory}", skipped')
    return text


def build_console_hooks(console: Console) -> PipelineHooks:
    """Hooks that narrate a run on `console` (pass a quiet console to mute them)."""

    def environment_ok(revision_range: RevisionRange) -> None:
        console.print(f"✔ No git issues found, comparing {revision_range.label()}")

    def changes_found(change_set: ChangeSet, targets: list[str]) -> None:
        console.print(f"◼ Found {len(change_set)} modified lockfile/s:")
        for path in change_set.paths:
            console.print(f"    ❯ {path}")
        console.print(f"◼ Target directories: {len(targets)}")

    def target_classified(directory: str, classification: Classification) -> None:
        for kind in classification.kinds:
            console.print(f'◼ "{kind.lockfile}" found in "{directory}"')

    def outcome(result: InstallOutcome) -> None:
        console.print(format_outcome(result))

    def warning(message: str) -> None:
        console.print(f"   ⚠ {message}", style="yellow", markup=False)

    return PipelineHooks(
        environment_ok=environment_ok,
        changes_found=changes_found,
        target_classified=target_classified,
        outcome=outcome,
        warning=warning,
    )


def build_outcomes_table(report: RunReport) -> Table:
    table = Table(title="Install outcomes")
    table.add_column("Directory", style="cyan", no_wrap=True)
    table.add_column("Kind", style="white")
    table.add_column("Command", style="magenta")
    table.add_column("Status", style="white")
    table.add_column("Time", style="dim", justify="right")

    for outcome in report.outcomes:
        symbol, style = _STATUS_STYLES[outcome.status]
        kind = outcome.kind.value if outcome.kind else "-"
        if outcome.resolved_ambiguity:
            kind += " (resolved)"
        table.add_row(
            outcome.directory,
            kind,
            outcome.command_line or "-",
            Text(f"{symbol} {outcome.status.value}", style=style),
            f"{outcome.duration_seconds:.1f}s" if outcome.command else "",
        )
    return table


def summary_line(report: RunReport) -> Text:
    if report.success:
        return Text(f"✔ Finished clai: {report.message}", style="bold green")
    return Text(f"✘ clai failed: {report.message}", style="bold red")
