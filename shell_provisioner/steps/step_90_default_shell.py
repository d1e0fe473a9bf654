from __future__ import annotations

import shutil
from typing import List

from ..context import ProvisionCtx
from ..lib.accounts import ensure_login_shell
from ..pipeline import Criticality


class DefaultShellStep:
    step_id = "90_default_shell"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        zsh = shutil.which("zsh")
        rec = ctx.accounts.lookup_user(ctx.target.name)
        return bool(zsh) and rec is not None and rec.shell == zsh

    def run(self, ctx: ProvisionCtx) -> List[str]:
        zsh = shutil.which("zsh")
        if not zsh:
            raise RuntimeError("zsh not found in PATH")
        ensure_login_shell(ctx.accounts, ctx.target.name, zsh)
        return []
