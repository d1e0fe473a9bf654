from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from shell_provisioner.config import load_config
from shell_provisioner.context import ProvisionCtx, Target
from shell_provisioner.lib.accounts import UserRecord


class FakeAccounts:
    """In-memory user/group database recording every mutating call."""

    def __init__(self, *, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.users: Dict[str, UserRecord] = {}
        self.members: Dict[str, Set[str]] = {}
        self.processes: Dict[str, int] = {}
        self.calls: List[tuple] = []
        self._next_uid = 1000

    def add_user(self, name: str, *, uid: Optional[int] = None, groups=(), shell: str = "/bin/bash", home: str = "") -> None:
        uid = self._next_uid if uid is None else uid
        self._next_uid = max(self._next_uid, uid) + 1
        self.users[name] = UserRecord(name=name, uid=uid, gid=uid, home=home or f"/home/{name}", shell=shell)
        self.members.setdefault(name, set())
        for g in groups:
            self.members.setdefault(g, set()).add(name)

    def lookup_user(self, name: str) -> Optional[UserRecord]:
        rec = self.users.get(name)
        if rec is None:
            return None
        return UserRecord(rec.name, rec.uid, rec.gid, rec.home, rec.shell, self.user_groups(name))

    def user_exists(self, name: str) -> bool:
        return name in self.users

    def user_groups(self, name: str) -> frozenset:
        if name not in self.users:
            return frozenset()
        return frozenset(g for g, users in self.members.items() if name in users or g == name)

    def group_exists(self, name: str) -> bool:
        return name in self.members

    def create_user(self, name: str, *, shell: str = "/bin/bash") -> None:
        self.calls.append(("create_user", name))
        self.add_user(name, shell=shell)

    def create_group(self, name: str) -> None:
        self.calls.append(("create_group", name))
        self.members.setdefault(name, set())

    def add_to_group(self, user: str, group: str) -> None:
        self.calls.append(("add_to_group", user, group))
        self.members[group].add(user)

    def set_login_shell(self, user: str, shell: str) -> None:
        self.calls.append(("set_login_shell", user, shell))
        rec = self.users[user]
        self.users[user] = UserRecord(rec.name, rec.uid, rec.gid, rec.home, shell)

    def delete_user(self, name: str) -> None:
        self.calls.append(("delete_user", name))
        del self.users[name]

    def has_processes(self, name: str) -> bool:
        return self.processes.get(name, 0) > 0

    def signal_processes(self, name: str, signal_name: str) -> None:
        self.calls.append(("signal", name, signal_name))
        if signal_name == "KILL":
            self.processes[name] = 0


class FakePackages:
    def __init__(self, installed=(), broken=()) -> None:
        self.installed: Set[str] = set(installed)
        self.broken: Set[str] = set(broken)
        self.install_calls: List[str] = []

    def is_installed(self, name: str) -> bool:
        return name in self.installed

    def install(self, name: str) -> bool:
        self.install_calls.append(name)
        if name in self.broken:
            return False
        self.installed.add(name)
        return True

    def update(self, *extra: str) -> bool:
        return True

    def refresh_index(self, *, attempts: int = 3, delay: float = 2.0) -> bool:
        return True


@pytest.fixture
def accounts() -> FakeAccounts:
    return FakeAccounts()


@pytest.fixture
def packages() -> FakePackages:
    return FakePackages()


@pytest.fixture
def cfg():
    return load_config()


@pytest.fixture
def make_ctx(tmp_path: Path, accounts: FakeAccounts, packages: FakePackages, cfg):
    def _make(name: str = "deploy", *, dry_run: bool = False) -> ProvisionCtx:
        home = tmp_path / "home" / name
        home.mkdir(parents=True, exist_ok=True)
        return ProvisionCtx(
            target=Target(name=name, home_dir=home),
            cfg=cfg,
            accounts=accounts,
            packages=packages,
            dry_run=dry_run,
        )

    return _make
