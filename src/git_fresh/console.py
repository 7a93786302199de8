"""Status output for git-fresh.

All status lines go to stderr, tagged with the tool name.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

TAG = "[git-fresh]"

console = Console(stderr=True, soft_wrap=True)


def _emit(message: str, style: str = "") -> None:
    console.print(f"{escape(TAG)} {escape(message)}", style=style or None, highlight=False)


def info(message: str) -> None:
    _emit(message)


def warn(message: str) -> None:
    _emit(message, style="yellow")


def error(message: str) -> None:
    _emit(message, style="bold red")


def setup_logging(debug: bool = False) -> None:
    """Configure logging for the application.

    Args:
        debug: If True, show DEBUG messages, including every git command run
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = RichHandler(console=console, show_path=False, show_time=debug)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else logging.WARNING)
