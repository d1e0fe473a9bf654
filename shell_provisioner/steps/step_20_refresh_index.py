from __future__ import annotations

from typing import List

from ..context import ProvisionCtx
from ..pipeline import Criticality


class RefreshIndexStep:
    step_id = "20_refresh_index"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return False

    def run(self, ctx: ProvisionCtx) -> List[str]:
        ok = ctx.packages.refresh_index(attempts=ctx.cfg.apt_retries, delay=ctx.cfg.apt_retry_delay)
        if not ok:
            return [f"package lists not updated after {ctx.cfg.apt_retries} attempts; some installs may fail"]
        return []
