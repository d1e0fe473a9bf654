from __future__ import annotations

from pathlib import Path
from typing import List

from ..context import ProvisionCtx
from ..lib.accounts import AccountError
from ..lib.files import fix_tree_ownership, tree_is_owned
from ..pipeline import Criticality


OWNED_PATHS = (
    ".oh-my-zsh",
    ".zsh",
    ".config/ranger",
    ".config/neofetch",
    ".zshrc",
    ".tmux.conf",
)


class FixOwnershipStep:
    step_id = "80_ownership"
    criticality = Criticality.BEST_EFFORT

    def _paths(self, ctx: ProvisionCtx) -> List[Path]:
        return [ctx.target.path(p) for p in OWNED_PATHS]

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        rec = ctx.accounts.lookup_user(ctx.target.name)
        if rec is None:
            return False
        return tree_is_owned(self._paths(ctx), uid=rec.uid, gid=rec.gid)

    def run(self, ctx: ProvisionCtx) -> List[str]:
        if not ctx.accounts.user_exists(ctx.target.name):
            raise AccountError(f"User {ctx.target.name} does not exist")
        return fix_tree_ownership(self._paths(ctx), ctx.target.name, dry_run=ctx.dry_run)
