from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)


BACKUP_TS_FORMAT = "%Y%m%d%H%M%S"


class BackupError(RuntimeError):
    pass


@dataclass(frozen=True)
class ManagedFile:
    """A generated config file owned by the target user."""

    path: Path
    render: Callable[[], str]
    owner: Optional[str] = None
    mode: int = 0o644


def backup_path_for(path: Path, now: Optional[datetime] = None) -> Path:
    ts = (now or datetime.now()).strftime(BACKUP_TS_FORMAT)
    return path.with_name(f"{path.name}.backup.{ts}")


def backup_existing(path: str | Path, *, now: Optional[datetime] = None, dry_run: bool = False) -> Optional[Path]:
    """Copy an existing file to `<path>.backup.<timestamp>` before it gets overwritten.

    Returns the backup path, or None when there was nothing to back up.
    Timestamps have one-second resolution: a second backup within the same
    second replaces the first.
    """

    p = Path(path)
    if not p.is_file():
        logger.info("No existing file at %s, no backup needed", p)
        return None

    dst = backup_path_for(p, now)
    if dry_run:
        logger.info("Would back up %s to %s", p, dst)
        return dst

    try:
        # copy2 carries the permission bits along with the bytes.
        shutil.copy2(p, dst)
    except OSError as e:
        raise BackupError(f"Failed to back up {p}: {e}") from e

    logger.info("Backed up %s to %s", p, dst)
    return dst


def chown(path: str | Path, owner: str, *, recursive: bool = False, dry_run: bool = False) -> None:
    argv = ["chown"]
    if recursive:
        argv.append("-R")
    argv += [f"{owner}:{owner}", str(path)]
    run_cmd(argv, dry_run=dry_run)


def write_managed_file(mf: ManagedFile, *, dry_run: bool = False) -> Optional[Path]:
    """Back up, then write, chmod and chown a managed file. Returns the backup path if any."""

    content = mf.render()
    backup = backup_existing(mf.path, dry_run=dry_run)
    if backup is not None and mf.owner:
        chown(backup, mf.owner, dry_run=dry_run)

    if dry_run:
        logger.info("Would write %s (%d bytes)", mf.path, len(content.encode("utf-8")))
        return backup

    mf.path.parent.mkdir(parents=True, exist_ok=True)
    mf.path.write_text(content, encoding="utf-8")
    os.chmod(mf.path, mf.mode)
    if mf.owner:
        chown(mf.path, mf.owner)

    logger.info("Wrote %s", mf.path)
    return backup


def normalize_modes(root: Path, *, dir_mode: int = 0o755, file_mode: int = 0o644) -> None:
    if root.is_file():
        os.chmod(root, file_mode)
        return
    os.chmod(root, dir_mode)
    for dirpath, dirnames, filenames in os.walk(root):
        for d in dirnames:
            p = Path(dirpath) / d
            if not p.is_symlink():
                os.chmod(p, dir_mode)
        for f in filenames:
            p = Path(dirpath) / f
            if not p.is_symlink():
                os.chmod(p, file_mode)


def _walk(root: Path) -> Iterable[Path]:
    yield root
    if root.is_dir():
        for dirpath, dirnames, filenames in os.walk(root):
            for name in dirnames + filenames:
                yield Path(dirpath) / name


def tree_is_owned(
    paths: Iterable[Path],
    *,
    uid: int,
    gid: int,
    dir_mode: int = 0o755,
    file_mode: int = 0o644,
) -> bool:
    """True when every existing path (recursively) already has the wanted owner and mode."""

    for root in paths:
        if not root.exists():
            continue
        for p in _walk(root):
            if p.is_symlink():
                continue
            st = p.stat()
            want = dir_mode if p.is_dir() else file_mode
            if st.st_uid != uid or st.st_gid != gid or (st.st_mode & 0o777) != want:
                return False
    return True


def fix_tree_ownership(
    paths: Iterable[Path],
    owner: str,
    *,
    dir_mode: int = 0o755,
    file_mode: int = 0o644,
    dry_run: bool = False,
) -> list[str]:
    """chown -R and normalise modes for each existing path. Returns per-path warnings."""

    warnings: list[str] = []
    for p in paths:
        if not p.exists():
            logger.info("%s does not exist, skipping", p)
            continue
        try:
            chown(p, owner, recursive=p.is_dir(), dry_run=dry_run)
            if not dry_run:
                normalize_modes(p, dir_mode=dir_mode, file_mode=file_mode)
        except (OSError, RuntimeError) as e:
            logger.warning("Failed to fix ownership for %s: %s", p, e)
            warnings.append(f"{p}: {e}")
    return warnings
