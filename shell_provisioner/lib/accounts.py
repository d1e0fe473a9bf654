from __future__ import annotations

import grp
import logging
import pwd
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable, Collection, FrozenSet, Optional

from .command import run_cmd

logger = logging.getLogger(__name__)


class AccountError(RuntimeError):
    pass


class DeletionRefused(AccountError):
    pass


@dataclass(frozen=True)
class UserRecord:
    name: str
    uid: int
    gid: int
    home: str
    shell: str
    groups: FrozenSet[str] = field(default_factory=frozenset)


class SystemAccounts:
    """Local user/group database.

    Reads go through the passwd/group databases, writes through the shadow-utils
    commands (useradd, groupadd, usermod, chsh, userdel).
    """

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run

    def lookup_user(self, name: str) -> Optional[UserRecord]:
        try:
            pw = pwd.getpwnam(name)
        except KeyError:
            return None
        return UserRecord(
            name=pw.pw_name,
            uid=pw.pw_uid,
            gid=pw.pw_gid,
            home=pw.pw_dir,
            shell=pw.pw_shell,
            groups=self.user_groups(name),
        )

    def user_exists(self, name: str) -> bool:
        return self.lookup_user(name) is not None

    def user_groups(self, name: str) -> FrozenSet[str]:
        groups = {g.gr_name for g in grp.getgrall() if name in g.gr_mem}
        try:
            groups.add(grp.getgrgid(pwd.getpwnam(name).pw_gid).gr_name)
        except KeyError:
            pass
        return frozenset(groups)

    def group_exists(self, name: str) -> bool:
        try:
            grp.getgrnam(name)
        except KeyError:
            return False
        return True

    def create_user(self, name: str, *, shell: str = "/bin/bash") -> None:
        run_cmd(["useradd", "-m", "-s", shell, name], dry_run=self.dry_run)

    def create_group(self, name: str) -> None:
        run_cmd(["groupadd", name], dry_run=self.dry_run)

    def add_to_group(self, user: str, group: str) -> None:
        # -a keeps the existing supplementary groups.
        run_cmd(["usermod", "-aG", group, user], dry_run=self.dry_run)

    def set_login_shell(self, user: str, shell: str) -> None:
        run_cmd(["chsh", "-s", shell, user], dry_run=self.dry_run)

    def delete_user(self, name: str) -> None:
        run_cmd(["userdel", "-r", name], dry_run=self.dry_run)

    def has_processes(self, name: str) -> bool:
        return run_cmd(["pgrep", "-u", name], check=False).returncode == 0

    def signal_processes(self, name: str, signal_name: str) -> None:
        run_cmd(["pkill", f"-{signal_name}", "-u", name], check=False, dry_run=self.dry_run)


def ensure_user(accounts, name: str, *, shell: str = "/bin/bash") -> bool:
    """Create `name` with a home directory unless it already exists.

    Returns True when the user was created by this call.
    """

    if accounts.user_exists(name):
        logger.info("User %s already exists, skipping creation", name)
        return False

    logger.info("Creating user %s with home directory", name)
    accounts.create_user(name, shell=shell)
    if not accounts.user_exists(name) and not getattr(accounts, "dry_run", False):
        raise AccountError(f"User {name} missing after useradd")
    logger.info("User %s created", name)
    return True


def ensure_group_membership(accounts, user: str, group: str, *, create_group: bool = False) -> bool:
    """Add `user` to `group` without touching their other groups.

    Returns True when membership was added by this call.
    """

    if not accounts.user_exists(user):
        raise AccountError(f"User {user} does not exist")

    if not accounts.group_exists(group):
        if not create_group:
            raise AccountError(f"Group {group} does not exist")
        logger.info("Group %s does not exist, creating it", group)
        accounts.create_group(group)

    if group in accounts.user_groups(user):
        logger.info("User %s already in group %s", user, group)
        return False

    logger.info("Adding user %s to group %s", user, group)
    accounts.add_to_group(user, group)
    return True


def ensure_login_shell(accounts, user: str, shell_path: str) -> bool:
    rec = accounts.lookup_user(user)
    if rec is None:
        raise AccountError(f"User {user} does not exist")
    if rec.shell == shell_path:
        logger.info("Login shell for %s already %s", user, shell_path)
        return False
    logger.info("Setting login shell for %s to %s", user, shell_path)
    accounts.set_login_shell(user, shell_path)
    return True


def terminate_user_processes(
    accounts,
    name: str,
    *,
    grace_s: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    if not accounts.has_processes(name):
        logger.info("No running processes found for %s", name)
        return

    logger.warning("Terminating running processes for %s", name)
    accounts.signal_processes(name, "TERM")
    sleep(grace_s)
    if accounts.has_processes(name):
        logger.warning("Some processes still running for %s, sending KILL", name)
        accounts.signal_processes(name, "KILL")
        sleep(1.0)
    if accounts.has_processes(name):
        raise AccountError(f"Failed to terminate all processes for {name}")


def check_deletable(accounts, name: str, *, invokers: Collection[str], min_uid: int = 1000) -> UserRecord:
    """Return the user record if `name` may be deleted, else raise DeletionRefused."""

    rec = accounts.lookup_user(name)
    if rec is None:
        raise DeletionRefused(f"User {name} does not exist")
    if rec.uid < min_uid:
        raise DeletionRefused(f"Cannot delete system user {name} (UID {rec.uid} < {min_uid})")
    if name in invokers:
        raise DeletionRefused(f"Cannot delete the invoking user {name}")
    return rec


def cleanup_leftovers(name: str, home: str, *, dry_run: bool = False) -> None:
    """Remove what `userdel -r` can leave behind. Best effort.

    Only `/home/<name>` is ever removed; a passwd home pointing anywhere else
    (a shared directory, /nonexistent) is left in place.
    """

    own_home = f"/home/{name}"
    if home.rstrip("/") == own_home:
        run_cmd(["rm", "-rf", own_home], check=False, dry_run=dry_run)
    else:
        logger.warning("Home directory %s of %s is not %s, leaving it in place", home, name, own_home)
    run_cmd(["find", "/tmp", "-user", name, "-delete"], check=False, dry_run=dry_run)
    run_cmd(["rm", "-f", f"/var/spool/cron/crontabs/{name}"], check=False, dry_run=dry_run)


def delete_user_account(
    accounts,
    name: str,
    *,
    invokers: Collection[str],
    min_uid: int = 1000,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    rec = check_deletable(accounts, name, invokers=invokers, min_uid=min_uid)
    terminate_user_processes(accounts, name, sleep=sleep)
    logger.info("Deleting user %s and home directory %s", name, rec.home)
    accounts.delete_user(name)
    cleanup_leftovers(name, rec.home, dry_run=getattr(accounts, "dry_run", False))
    logger.info("User %s deleted", name)


def reset_password(name: str, *, disable: bool = False, dry_run: bool = False) -> None:
    if disable:
        run_cmd(["passwd", "-d", name], dry_run=dry_run)
        return
    # Interactive: passwd reads the new password from the terminal.
    if dry_run:
        logger.info("Would run passwd %s", name)
        return
    p = subprocess.run(["passwd", name])
    if p.returncode != 0:
        raise AccountError(f"Failed to set password for {name}")
