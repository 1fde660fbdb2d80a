"""Logging setup for the CLI.

Core and adapter modules log through `logging.getLogger(__name__)`; this
routes those records to stderr through Rich.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(*, verbose: bool = False, console: Console | None = None) -> None:
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    root_logger = logging.getLogger()
    # Replace previous handlers so repeated invocations don't duplicate lines.
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
