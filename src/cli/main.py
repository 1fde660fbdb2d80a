"""clai command-line interface (Typer).

`clai run` is the whole tool: it compares two revisions, finds the changed
lockfiles and reinstalls dependencies in each affected directory. The
`doctor` group checks the environment and stores default flags.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from adapters.json_exporter import export_report_json
from cli import doctor
from cli.logging_setup import setup_logging
from cli.ui_components import (
    build_console_hooks,
    build_outcomes_table,
    format_outcome,
    print_banner,
    print_enabled_flags,
    summary_line,
)
from core.config import AppSettings
from core.services.sync_pipeline import SyncRequest, sync_lockfiles

app = typer.Typer(
    no_args_is_help=True,
    help="Re-run package installs in every directory whose lockfile changed.",
)
app.add_typer(doctor.app, name="doctor")


@app.command(name="run")
def sync_command(
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Exit 1 on git problems, ambiguous lockfiles or failed installs.",
    ),
    clean: bool = typer.Option(
        False,
        "--ci",
        "--clean",
        help="Use the frozen install variant (npm ci, --frozen-lockfile).",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print errors and the final line."),
    base: str | None = typer.Option(None, "--base", help="Older revision. Default: one before --head."),
    head: str | None = typer.Option(None, "--head", help="Newer revision. Default: HEAD."),
    strip_components: int | None = typer.Option(
        None,
        "--strip-components",
        min=0,
        help="Leading path components to drop from changed lockfile paths.",
    ),
    max_concurrency: int | None = typer.Option(
        None,
        "--max-concurrency",
        min=1,
        help="Maximum number of installs running at the same time.",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        min=0.001,
        help="Per-install timeout in seconds.",
    ),
    json_output: Path | None = typer.Option(
        None,
        "--json-output",
        help="Write the run report as JSON to this path.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs (git and install commands)."),
) -> None:
    """Detect changed lockfiles between two revisions and reinstall."""

    settings = AppSettings()
    overrides: dict[str, object] = {
        "strict": strict or settings.strict,
        "clean": clean or settings.clean,
        "quiet": quiet or settings.quiet,
    }
    if base is not None:
        overrides["base_revision"] = base
    if head is not None:
        overrides["head_revision"] = head
    if strip_components is not None:
        overrides["path_strip_components"] = strip_components
    if max_concurrency is not None:
        overrides["max_concurrency"] = max_concurrency
    if timeout is not None:
        overrides["install_timeout_seconds"] = timeout
    settings = settings.model_copy(update=overrides)

    console = Console(quiet=settings.quiet)
    err_console = Console(stderr=True)
    out_console = Console()
    setup_logging(verbose=verbose, console=err_console)

    print_banner(console)
    print_enabled_flags(console, strict=settings.strict, clean=settings.clean)
    console.print("❯ Performing git checks...")

    try:
        report = asyncio.run(
            sync_lockfiles(
                settings=settings,
                request=SyncRequest.from_settings(settings),
                hooks=build_console_hooks(console),
            )
        )
    except Exception as exc:
        err_console.print(f"✘ {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc

    if settings.quiet:
        for failed in report.failures:
            err_console.print(format_outcome(failed))

    if report.environment_error:
        err_console.print(f"✘ {report.environment_error}", style="red", markup=False)
    elif not report.changed_paths:
        console.print("✘ No lockfile changes found!")
    else:
        console.print(build_outcomes_table(report))

    if json_output is not None:
        path = export_report_json(report=report, output_path=json_output)
        console.print(f"[green]Report written to:[/green] {path}")

    out_console.print(summary_line(report))
    raise typer.Exit(code=report.exit_code)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
