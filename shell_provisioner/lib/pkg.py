from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, List

from .command import run_cmd

logger = logging.getLogger(__name__)


APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def fix_apt_lists(*, dry_run: bool = False) -> None:
    """Reset apt list state that commonly breaks `apt-get update` (stale lists, bad perms).

    Every command here is allowed to fail.
    """

    logger.info("Cleaning up apt lists before retry")
    run_cmd(["chmod", "-R", "755", "/etc/apt/sources.list.d/"], check=False, dry_run=dry_run)
    run_cmd(["chmod", "644", "/etc/apt/sources.list"], check=False, dry_run=dry_run)
    run_cmd(["apt-get", "clean"], check=False, dry_run=dry_run)
    run_cmd(["rm", "-rf", "/var/lib/apt/lists/"], check=False, dry_run=dry_run)
    run_cmd(["mkdir", "-p", "/var/lib/apt/lists/partial"], check=False, dry_run=dry_run)


class AptPackages:
    """apt/dpkg backed package manager."""

    def __init__(self, *, dry_run: bool = False, sleep: Callable[[float], None] = time.sleep) -> None:
        self.dry_run = dry_run
        self._sleep = sleep

    def is_installed(self, name: str) -> bool:
        r = run_cmd(["dpkg-query", "-W", "-f=${Status}", name], check=False)
        return r.returncode == 0 and "install ok installed" in r.stdout

    def install(self, name: str) -> bool:
        r = run_cmd(["apt-get", "install", "-y", name], check=False, env=APT_ENV, dry_run=self.dry_run)
        return r.returncode == 0

    def update(self, *extra: str) -> bool:
        r = run_cmd(["apt-get", "update", *extra], check=False, env=APT_ENV, dry_run=self.dry_run)
        return r.returncode == 0

    def refresh_index(self, *, attempts: int = 3, delay: float = 2.0) -> bool:
        """Refresh package lists, escalating the recovery strategy on each failure.

        1st failure: clean apt lists. 2nd failure: retry once with
        --allow-insecure-repositories. Returns False if every attempt failed.
        """

        for attempt in range(1, attempts + 1):
            logger.info("Package list update attempt %d of %d", attempt, attempts)
            if self.update():
                logger.info("Package lists updated")
                return True

            logger.warning("Package list update attempt %d failed", attempt)
            if attempt == 1:
                fix_apt_lists(dry_run=self.dry_run)
            elif attempt == 2:
                if self.update("--allow-insecure-repositories"):
                    logger.warning("Package lists updated with relaxed security (some signatures may be missing)")
                    return True

            if attempt < attempts:
                self._sleep(delay)

        logger.warning("Failed to update package lists after %d attempts", attempts)
        return False


def install_many(packages: AptPackages, names: Iterable[str]) -> List[str]:
    """Install each missing package on its own; return the names that failed."""

    failed: list[str] = []
    wanted = [n for n in names if n]
    installed = 0
    for name in wanted:
        if packages.is_installed(name):
            logger.info("%s already installed", name)
            installed += 1
            continue

        if packages.install(name):
            logger.info("%s installed", name)
            installed += 1
        else:
            logger.warning("Failed to install %s, continuing with remaining packages", name)
            failed.append(name)

    logger.info("%d/%d packages installed", installed, len(wanted))
    return failed
