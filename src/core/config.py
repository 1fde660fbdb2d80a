"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without polluting the CLI.
- CLI flags override these values; everything else reads them from `AppSettings`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "clai"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "clai"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "clai"
    return Path.home() / ".config" / "clai"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# clai user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Precedence: CLI flag > `CLAI_*` environment variable > project `.env` >
    user `.env` > default.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLAI_",
        extra="ignore",
        case_sensitive=False,
        # Later files win: the project .env overrides the user-wide one.
        env_file=(str(get_user_env_file()), ".env"),
        env_file_encoding="utf-8",
    )

    strict: bool = Field(
        default=False,
        description="Escalate environment problems, ambiguity and install failures to exit code 1.",
    )
    clean: bool = Field(
        default=False,
        description="Use the frozen/CI install variant (npm ci, --frozen-lockfile).",
    )
    quiet: bool = Field(
        default=False,
        description="Suppress informational output.",
    )

    head_revision: str = Field(
        default="HEAD",
        min_length=1,
        description="Newer side of the comparison.",
    )
    base_revision: str | None = Field(
        default=None,
        description="Older side of the comparison; defaults to one revision before head.",
    )

    git_binary: str = Field(
        default="git",
        min_length=1,
        description="Git executable name or path.",
    )
    path_strip_components: int = Field(
        default=0,
        ge=0,
        le=32,
        description="Leading path components removed from each changed lockfile path.",
    )

    max_concurrency: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Maximum number of installs running at the same time.",
    )
    install_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-install timeout (seconds). None waits indefinitely.",
    )
