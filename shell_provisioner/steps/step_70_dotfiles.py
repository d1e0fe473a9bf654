from __future__ import annotations

import shlex
from pathlib import PurePosixPath
from typing import Callable, List

from ..context import ProvisionCtx
from ..dotfiles import TmuxConfig, ZshrcConfig, render_neofetch_conf, render_tmux_conf, render_zshrc
from ..lib.command import run_as
from ..lib.files import ManagedFile, write_managed_file
from ..pipeline import Criticality


class WriteDotfileStep:
    """Regenerate one dotfile, keeping a timestamped backup of the previous version."""

    criticality = Criticality.BEST_EFFORT

    def __init__(self, name: str, rel_path: str, render: Callable[[ProvisionCtx], str], *, mode: int = 0o644) -> None:
        self.step_id = f"70_dotfile_{name}"
        self.rel_path = rel_path
        self.render = render
        self.mode = mode

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return False

    def managed_file(self, ctx: ProvisionCtx) -> ManagedFile:
        return ManagedFile(
            path=ctx.target.path(self.rel_path),
            render=lambda: self.render(ctx),
            owner=ctx.target.name,
            mode=self.mode,
        )

    def run(self, ctx: ProvisionCtx) -> List[str]:
        mf = self.managed_file(ctx)
        parent = PurePosixPath(self.rel_path).parent
        if str(parent) != "." and not mf.path.parent.is_dir():
            # Created as the user so intermediate dirs such as ~/.config are theirs.
            run_as(ctx.target.name, f"mkdir -p ~/{shlex.quote(str(parent))}", dry_run=ctx.dry_run)
        write_managed_file(mf, dry_run=ctx.dry_run)
        return []


def _zshrc(ctx: ProvisionCtx) -> str:
    return render_zshrc(ZshrcConfig.from_mapping(ctx.cfg.zsh, default_user=ctx.target.name))


def _tmux_conf(ctx: ProvisionCtx) -> str:
    return render_tmux_conf(TmuxConfig.from_mapping(ctx.cfg.tmux))


def _neofetch_conf(ctx: ProvisionCtx) -> str:
    return render_neofetch_conf(ctx.cfg.neofetch_info)


def dotfile_steps() -> List[WriteDotfileStep]:
    return [
        WriteDotfileStep("zshrc", ".zshrc", _zshrc),
        WriteDotfileStep("tmux_conf", ".tmux.conf", _tmux_conf),
        WriteDotfileStep("neofetch_conf", ".config/neofetch/config.conf", _neofetch_conf),
    ]
