from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .config import ProvisionConfig


@dataclass(frozen=True)
class Target:
    """The user being provisioned."""

    name: str
    home_dir: Path

    def path(self, rel: str) -> Path:
        return self.home_dir / rel


def resolve_target(name: str, accounts: Any) -> Target:
    rec = accounts.lookup_user(name)
    home = rec.home if rec is not None and rec.home else f"/home/{name}"
    return Target(name=name, home_dir=Path(home))


def resolve_invoker(accounts: Any, environ: Optional[Mapping[str, str]] = None) -> Target:
    """The human behind sudo: SUDO_USER when set (and not root), otherwise root."""

    env = os.environ if environ is None else environ
    sudo_user = env.get("SUDO_USER") or ""
    if sudo_user and sudo_user != "root":
        return resolve_target(sudo_user, accounts)
    return Target(name="root", home_dir=Path("/root"))


@dataclass(frozen=True)
class ProvisionCtx:
    target: Target
    cfg: ProvisionConfig
    accounts: Any
    packages: Any
    dry_run: bool = False
