from __future__ import annotations

from typing import List, Sequence

from ..context import ProvisionCtx
from ..lib.pkg import install_many
from ..pipeline import Criticality


class InstallPackagesStep:
    """Install one package group; individual package failures become warnings."""

    criticality = Criticality.BEST_EFFORT

    def __init__(self, group: str, packages: Sequence[str]) -> None:
        self.group = group
        self.packages = list(packages)
        self.step_id = f"30_packages_{group}"

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return all(ctx.packages.is_installed(p) for p in self.packages)

    def run(self, ctx: ProvisionCtx) -> List[str]:
        failed = install_many(ctx.packages, self.packages)
        if failed:
            return [f"failed packages: {' '.join(failed)}"]
        return []
