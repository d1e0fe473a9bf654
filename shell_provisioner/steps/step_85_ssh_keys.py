from __future__ import annotations

import logging
import os
from typing import List

from ..context import ProvisionCtx
from ..lib.accounts import AccountError
from ..lib.command import run_as
from ..lib.files import ManagedFile, chown, write_managed_file
from ..lib.net import fetch_text
from ..lib.sshkeys import InvalidKeyMaterial, is_placeholder_url, key_fingerprints, validate_key_text
from ..pipeline import Criticality

logger = logging.getLogger(__name__)


class InstallSSHKeysStep:
    """Install authorized_keys from a URL.

    The downloaded text is trusted after a key-format check only.
    """

    step_id = "85_ssh_keys"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return False

    def run(self, ctx: ProvisionCtx) -> List[str]:
        url = ctx.cfg.ssh_key_url
        if not url:
            raise InvalidKeyMaterial("No SSH key URL configured")
        if is_placeholder_url(url):
            raise InvalidKeyMaterial("SSH key URL is still the placeholder; set ssh.key_url in the config")

        user = ctx.target.name
        if not ctx.accounts.user_exists(user):
            raise AccountError(f"User {user} does not exist")

        logger.info("Downloading SSH public keys from %s", url)
        text = fetch_text(url)
        keys = validate_key_text(text)

        ssh_dir = ctx.target.path(".ssh")
        run_as(user, "mkdir -p ~/.ssh", dry_run=ctx.dry_run)

        content = text if text.endswith("\n") else text + "\n"
        write_managed_file(
            ManagedFile(path=ssh_dir / "authorized_keys", render=lambda: content, owner=user, mode=0o600),
            dry_run=ctx.dry_run,
        )
        if not ctx.dry_run:
            chown(ssh_dir, user, recursive=True)
            os.chmod(ssh_dir, 0o700)

        logger.info("Installed %d SSH public key(s) for %s", len(keys), user)
        for fp in key_fingerprints(keys):
            logger.info("  %s", fp)
        return []
