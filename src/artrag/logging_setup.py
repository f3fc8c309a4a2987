"""Root logger configuration for the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("LiteLLM", "litellm", "httpx", "httpcore", "openai")


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Install a RichHandler on the root logger (INFO, or DEBUG if *verbose*)."""
    root = logging.getLogger()
    for existing in root.handlers[:]:
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
