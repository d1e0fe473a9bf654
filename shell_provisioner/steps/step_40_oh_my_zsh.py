from __future__ import annotations

import logging
import shlex
from typing import List

from ..context import ProvisionCtx
from ..lib.command import run_as
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


class OhMyZshStep:
    step_id = "40_oh_my_zsh"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return ctx.target.path(".oh-my-zsh").is_dir() and not ctx.cfg.update_plugins

    def run(self, ctx: ProvisionCtx) -> List[str]:
        user = ctx.target.name
        if ctx.target.path(".oh-my-zsh").is_dir():
            logger.info("Updating Oh My Zsh for %s", user)
            run_as(user, "cd ~/.oh-my-zsh && git pull", dry_run=ctx.dry_run)
            return []

        url = str(ctx.cfg.oh_my_zsh.get("install_url"))
        logger.info("Installing Oh My Zsh for %s", user)
        run_as(user, f'sh -c "$(curl -fsSL {shlex.quote(url)})" "" --unattended', dry_run=ctx.dry_run)
        return []


class ZshPluginsStep:
    step_id = "42_zsh_plugins"
    criticality = Criticality.BEST_EFFORT

    def _plugin_dirs(self, ctx: ProvisionCtx):
        return {name: ctx.target.path(f".zsh/{name}") for name in ctx.cfg.zsh_plugin_repos}

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        if ctx.cfg.update_plugins:
            return False
        return all(d.is_dir() for d in self._plugin_dirs(ctx).values())

    def run(self, ctx: ProvisionCtx) -> List[str]:
        user = ctx.target.name
        warnings: list[str] = []

        run_as(user, "mkdir -p ~/.zsh", dry_run=ctx.dry_run)

        dirs = self._plugin_dirs(ctx)
        for name, repo in ctx.cfg.zsh_plugin_repos.items():
            if dirs[name].is_dir():
                if not ctx.cfg.update_plugins:
                    continue
                logger.info("%s already installed, updating", name)
                cmd = f"cd ~/.zsh/{shlex.quote(name)} && git pull"
            else:
                logger.info("Installing %s", name)
                cmd = f"git clone {shlex.quote(repo)} ~/.zsh/{shlex.quote(name)}"

            r = run_as(user, cmd, check=False, dry_run=ctx.dry_run)
            if not r.ok:
                logger.warning("Failed to install/update %s, continuing", name)
                warnings.append(f"{name}: {r.stderr.strip() or 'git failed'}")
        return warnings
