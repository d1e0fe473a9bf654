from __future__ import annotations

from typing import List

from ..context import ProvisionCtx
from ..lib.command import command_exists, run_as
from ..pipeline import Criticality


class RangerConfigStep:
    step_id = "45_ranger_config"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return ctx.target.path(".config/ranger/rc.conf").is_file()

    def run(self, ctx: ProvisionCtx) -> List[str]:
        if not ctx.dry_run and not command_exists("ranger"):
            raise RuntimeError("ranger is not installed")
        run_as(ctx.target.name, "mkdir -p ~/.config/ranger", dry_run=ctx.dry_run)
        run_as(ctx.target.name, "ranger --copy-config=all", dry_run=ctx.dry_run)
        return []
