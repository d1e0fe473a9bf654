from __future__ import annotations

from typing import List

from ..context import ProvisionCtx
from ..lib.accounts import ensure_group_membership
from ..pipeline import Criticality


class GroupAccessStep:
    """Additive group membership for the target user."""

    criticality = Criticality.BEST_EFFORT

    def __init__(self, group: str, *, step_id: str, create_group: bool = False) -> None:
        self.group = group
        self.step_id = step_id
        self.create_group = create_group

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return self.group in ctx.accounts.user_groups(ctx.target.name)

    def run(self, ctx: ProvisionCtx) -> List[str]:
        ensure_group_membership(ctx.accounts, ctx.target.name, self.group, create_group=self.create_group)
        return []


class SudoAccessStep(GroupAccessStep):
    def __init__(self) -> None:
        super().__init__("sudo", step_id="15_sudo_access")
