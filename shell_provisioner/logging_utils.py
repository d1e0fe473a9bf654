from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_PATH = "/var/log/shell-provisioner.log"
FALLBACK_LOG_NAME = "shell-provisioner.log"

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _open_log_file(log_path: str) -> tuple[logging.FileHandler, str]:
    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        # /var/log is not writable without root (e.g. --dry-run as a normal user).
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    *,
    verbose: bool = False,
    console: Console | None = None,
) -> str:
    """Send every record to the log file and INFO and above to the terminal.

    The file always gets DEBUG, so command output captured by run_cmd ends up
    there; `verbose` lowers the terminal threshold to DEBUG as well.
    Calling this twice keeps the first configuration.

    Returns the log file actually in use.
    """

    root = logging.getLogger()
    if getattr(root, "_shell_provisioner_configured", False):
        return getattr(root, "_shell_provisioner_log_path", log_path)

    root.setLevel(logging.DEBUG)

    file_handler, chosen_path = _open_log_file(log_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt=_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    root.addHandler(file_handler)

    term = RichHandler(console=console or Console(stderr=True), show_path=False, markup=False)
    term.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.addHandler(term)

    setattr(root, "_shell_provisioner_configured", True)
    setattr(root, "_shell_provisioner_log_path", chosen_path)

    logging.getLogger(__name__).info("Logging to %s (requested %s)", chosen_path, log_path)
    return chosen_path
