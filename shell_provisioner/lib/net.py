from __future__ import annotations

import logging
from pathlib import Path

from .command import command_exists, run_cmd

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    pass


def fetch_text(url: str) -> str:
    """GET a URL as text with curl, falling back to wget."""

    r = run_cmd(["curl", "-fsSL", url], check=False)
    if r.ok:
        return r.stdout
    if command_exists("wget"):
        r = run_cmd(["wget", "-q", "-O", "-", url], check=False)
        if r.ok:
            return r.stdout
    raise FetchError(f"Failed to download {url}")


def download(url: str, dest: str | Path, *, dry_run: bool = False) -> Path:
    d = Path(dest)
    if not dry_run:
        d.parent.mkdir(parents=True, exist_ok=True)
    r = run_cmd(["curl", "-fsSL", url, "-o", str(d)], check=False, dry_run=dry_run)
    if r.ok:
        return d
    if command_exists("wget"):
        r = run_cmd(["wget", "-q", "-O", str(d), url], check=False, dry_run=dry_run)
        if r.ok:
            return d
    raise FetchError(f"Failed to download {url} to {d}")
