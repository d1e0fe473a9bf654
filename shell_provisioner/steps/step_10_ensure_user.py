from __future__ import annotations

import logging
from typing import List

from ..context import ProvisionCtx
from ..lib.accounts import ensure_user
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


class EnsureUserStep:
    step_id = "10_ensure_user"
    criticality = Criticality.CRITICAL

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return ctx.accounts.user_exists(ctx.target.name)

    def run(self, ctx: ProvisionCtx) -> List[str]:
        ensure_user(ctx.accounts, ctx.target.name, shell="/bin/bash")
        logger.info("User %s home directory: %s", ctx.target.name, ctx.target.home_dir)
        return []
