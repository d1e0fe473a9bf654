"""Debian/Ubuntu development workstation provisioner.

Core design goals:
- Ordered, idempotent steps; state is re-read from the live system every run
- Critical steps abort the run, best-effort steps only warn
- Generated dotfiles are backed up before being rewritten
- Centralized logging and a per-step summary
"""

__all__ = []
