from __future__ import annotations

import logging
import os
from typing import List

from ..context import ProvisionCtx
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


class VerifyPrivilegesStep:
    step_id = "00_verify_privileges"
    criticality = Criticality.CRITICAL

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return False

    def run(self, ctx: ProvisionCtx) -> List[str]:
        if os.geteuid() == 0:
            logger.info("Root privileges confirmed")
            return []
        if ctx.dry_run:
            return ["not running as root (dry run, nothing will be changed)"]
        raise PermissionError("shell-provisioner must be run as root (use sudo)")
