from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from ..context import ProvisionCtx
from ..lib.arch import release_arch
from ..lib.command import command_exists, run_cmd
from ..lib.net import download
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


class InstallSopsStep:
    step_id = "55_sops"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return command_exists("sops")

    def run(self, ctx: ProvisionCtx) -> List[str]:
        sops = ctx.cfg.sops
        version = str(sops.get("version"))
        url = str(sops.get("url")).format(version=version, arch=release_arch())
        dest = Path(str(sops.get("dest") or "/usr/local/bin/sops"))

        logger.info("Installing Sops %s", version)
        download(url, dest, dry_run=ctx.dry_run)
        if ctx.dry_run:
            return []

        os.chmod(dest, 0o755)
        r = run_cmd([str(dest), "--version"], check=False)
        if not r.ok:
            raise RuntimeError(f"Sops installation failed: {dest} --version did not run")
        logger.info("Installed %s", r.stdout.strip())
        return []
