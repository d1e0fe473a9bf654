from __future__ import annotations

import logging
from typing import List

from .command import run_cmd

logger = logging.getLogger(__name__)


KEY_PREFIXES = ("ssh-rsa", "ssh-ed25519", "ecdsa-sha2-nistp256", "ssh-dss")
PLACEHOLDER_MARKER = "YOUR_GITHUB_USERNAME"


class InvalidKeyMaterial(ValueError):
    pass


def is_placeholder_url(url: str) -> bool:
    return PLACEHOLDER_MARKER in url


def validate_key_text(text: str) -> List[str]:
    """Return the public key lines in `text`.

    This is a format check only: nothing ties the keys to their owner.
    """

    if not text.strip():
        raise InvalidKeyMaterial("Downloaded SSH key file is empty")

    keys = [line.strip() for line in text.splitlines() if line.startswith(KEY_PREFIXES)]
    if not keys:
        head = "\n".join(text.splitlines()[:5])
        raise InvalidKeyMaterial(f"Content does not look like SSH public keys:\n{head}")
    return keys


def key_fingerprints(keys: List[str]) -> List[str]:
    out: list[str] = []
    for key in keys:
        r = run_cmd(["ssh-keygen", "-lf", "-"], check=False, input_text=key + "\n")
        parts = r.stdout.split()
        if r.ok and len(parts) >= 2:
            out.append(parts[1])
    return out
