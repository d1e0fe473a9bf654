from __future__ import annotations

import platform
from typing import Optional

_RELEASE_ARCH = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def release_arch(machine: Optional[str] = None) -> str:
    """Map `uname -m` to the arch names used by Go-style release assets (default amd64)."""
    return _RELEASE_ARCH.get((machine or platform.machine()).lower(), "amd64")


def go_arch(machine: Optional[str] = None) -> str:
    m = (machine or platform.machine()).lower()
    if m == "armv7l":
        return "armv6l"
    return release_arch(m)
