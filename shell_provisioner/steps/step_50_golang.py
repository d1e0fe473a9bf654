from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import List

from ..context import ProvisionCtx
from ..lib.arch import go_arch
from ..lib.command import command_exists, run_as, run_cmd
from ..lib.net import download
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


GO_PROFILE = """# Go environment variables
export GOROOT={root}
export GOPATH=$HOME/go
export PATH=$PATH:{root}/bin:$GOPATH/bin
"""


class InstallGoStep:
    step_id = "50_golang"
    criticality = Criticality.BEST_EFFORT

    def _root(self, ctx: ProvisionCtx) -> Path:
        return Path(str(ctx.cfg.go.get("root") or "/usr/local/go"))

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return command_exists("go") or (self._root(ctx) / "bin/go").exists()

    def run(self, ctx: ProvisionCtx) -> List[str]:
        go = ctx.cfg.go
        version = str(go.get("version"))
        arch = go_arch()
        url = str(go.get("url")).format(version=version, arch=arch)
        root = self._root(ctx)

        logger.info("Installing Go %s for linux-%s", version, arch)
        with tempfile.TemporaryDirectory(prefix="go-install-") as tmp:
            tarball = download(url, Path(tmp) / "go.tar.gz", dry_run=ctx.dry_run)
            run_cmd(["tar", "-C", str(root.parent), "-xzf", str(tarball)], dry_run=ctx.dry_run)

        profile = Path(str(go.get("profile") or "/etc/profile.d/go.sh"))
        if ctx.dry_run:
            logger.info("Would write %s", profile)
            return []

        profile.parent.mkdir(parents=True, exist_ok=True)
        profile.write_text(GO_PROFILE.format(root=root), encoding="utf-8")
        os.chmod(profile, 0o644)

        r = run_cmd([str(root / "bin/go"), "version"], check=False)
        if not r.ok:
            raise RuntimeError("Go installation failed: go version did not run")
        logger.info("Installed %s", r.stdout.strip())
        return []


class GoWorkspaceStep:
    step_id = "52_go_workspace"
    criticality = Criticality.BEST_EFFORT

    SUBDIRS = ("bin", "pkg", "src")

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return all(ctx.target.path(f"go/{d}").is_dir() for d in self.SUBDIRS)

    def run(self, ctx: ProvisionCtx) -> List[str]:
        warnings: list[str] = []
        for d in self.SUBDIRS:
            r = run_as(ctx.target.name, f"mkdir -p ~/go/{d}", check=False, dry_run=ctx.dry_run)
            if not r.ok:
                logger.warning("Failed to create ~/go/%s, continuing", d)
                warnings.append(f"could not create ~/go/{d}")
        return warnings
