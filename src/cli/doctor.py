"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.git_client import GitClient
from adapters.process_runner import run_command
from core.config import AppSettings, write_user_env_vars
from core.domain.models import LockfileKind, RevisionRange

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and default settings.")

_console = Console()


async def _check_tool(name: str) -> tuple[bool, str]:
    try:
        result = await run_command([name, "--version"], cwd=Path.cwd(), timeout=15.0)
    except OSError as exc:
        return False, str(exc)
    if not result.ok:
        return False, result.stderr.strip() or f"exit code {result.returncode}"
    return True, result.stdout.strip().splitlines()[0] if result.stdout.strip() else "OK"


@app.command()
def run() -> None:
    """Run baseline diagnostics for git and the package managers."""

    settings = AppSettings()
    git = GitClient(settings)
    revision_range = RevisionRange(head=settings.head_revision, base=settings.base_revision or "")

    table = Table(title="clai Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    version = git.version()
    table.add_row("git binary", "OK" if version else "FAIL", version or f"{settings.git_binary!r} not runnable")

    inside = bool(version) and git.is_inside_work_tree()
    table.add_row("git repository", "OK" if inside else "FAIL", str(Path.cwd()))

    has_base = inside and git.revision_exists(revision_range.effective_base)
    table.add_row(
        "base revision",
        "OK" if has_base else "FAIL",
        revision_range.label(),
    )

    for kind in LockfileKind:
        ok, detail = asyncio.run(_check_tool(kind.value))
        table.add_row(kind.value, "OK" if ok else "MISSING", detail)

    table.add_row("strict", "ON" if settings.strict else "OFF", "CLAI_STRICT")
    table.add_row("ci mode", "ON" if settings.clean else "OFF", "CLAI_CLEAN")

    _console.print(table)

    if not has_base:
        _console.print(
            "\n[yellow]Note:[/yellow] without a base revision `clai run` has nothing to compare "
            "and exits 0 (or 1 with --strict)."
        )


@app.command(name="save-defaults")
def save_defaults(
    strict: bool | None = typer.Option(None, "--strict/--no-strict", help="Default for --strict."),
    clean: bool | None = typer.Option(None, "--ci/--no-ci", help="Default for --ci."),
    max_concurrency: int | None = typer.Option(None, "--max-concurrency", min=1, max=64),
    strip_components: int | None = typer.Option(None, "--strip-components", min=0, max=32),
) -> None:
    """Store default flags in the user config .env."""

    values: dict[str, str] = {}
    if strict is not None:
        values["CLAI_STRICT"] = "true" if strict else "false"
    if clean is not None:
        values["CLAI_CLEAN"] = "true" if clean else "false"
    if max_concurrency is not None:
        values["CLAI_MAX_CONCURRENCY"] = str(max_concurrency)
    if strip_components is not None:
        values["CLAI_PATH_STRIP_COMPONENTS"] = str(strip_components)

    if not values:
        raise typer.BadParameter("pass at least one option to save")

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved defaults to:[/green] {env_path}")
