"""One-shot account maintenance: delete a provisioned user, reset a password.

Confirmation prompts live here; the refusal rules (system accounts, the
invoking identity) are enforced by lib.accounts.
"""

from __future__ import annotations

import argparse
import logging
import os
import pwd
from typing import Callable, Optional

from .config import load_config
from .context import resolve_invoker
from .lib.accounts import AccountError, SystemAccounts, check_deletable, delete_user_account, reset_password
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)


def _require_root() -> None:
    if os.geteuid() != 0:
        raise SystemExit("This command must be run as root (use sudo)")


def _invoking_identities(accounts: SystemAccounts) -> set[str]:
    effective = pwd.getpwuid(os.geteuid()).pw_name
    return {effective, resolve_invoker(accounts).name}


def confirm_deletion(name: str, home: str, ask: Optional[Callable[[str], str]] = None) -> bool:
    ask = ask or input
    print("WARNING: this action is IRREVERSIBLE. It permanently deletes:")
    print(f"  - user account: {name}")
    print(f"  - home directory: {home}")
    print("  - all running processes of the user")
    if ask(f"Are you sure you want to delete user '{name}'? (yes/no): ").strip() != "yes":
        return False
    return ask(f"Type the username '{name}' to confirm: ").strip() == name


def cmd_delete_user(args: argparse.Namespace) -> int:
    _require_root()
    cfg = load_config(args.config)
    configure_logging(log_path=cfg.log_path)

    accounts = SystemAccounts()
    invokers = _invoking_identities(accounts)
    try:
        rec = check_deletable(accounts, args.username, invokers=invokers, min_uid=cfg.min_uid)
    except AccountError as e:
        logger.error("%s", e)
        return 1

    print(f"User: {rec.name}  UID: {rec.uid}  Home: {rec.home}  Groups: {' '.join(sorted(rec.groups))}")
    if accounts.has_processes(rec.name):
        logger.warning("User %s has running processes; they will be terminated", rec.name)

    if not args.force and not confirm_deletion(rec.name, rec.home):
        logger.info("Deletion cancelled")
        return 1

    try:
        delete_user_account(accounts, args.username, invokers=invokers, min_uid=cfg.min_uid)
    except AccountError as e:
        logger.error("User deletion failed: %s", e)
        return 1
    return 0


def cmd_reset_password(args: argparse.Namespace) -> int:
    _require_root()
    cfg = load_config(args.config)
    configure_logging(log_path=cfg.log_path)

    accounts = SystemAccounts()
    if not accounts.user_exists(args.username):
        logger.error("User %s does not exist", args.username)
        return 1

    try:
        reset_password(args.username, disable=bool(args.disable))
    except (AccountError, RuntimeError) as e:
        logger.error("%s", e)
        logger.info("With special-character trouble, use a simpler password or --disable")
        return 1

    if args.disable:
        logger.info("Password disabled for %s; switch with: su - %s", args.username, args.username)
    else:
        logger.info("Password set for %s", args.username)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="shell-provisioner-admin")
    p.add_argument("--config", default=None, help="YAML config merged over the packaged defaults")

    sub = p.add_subparsers(dest="subcmd", required=True)

    sp = sub.add_parser("delete-user", help="Delete a user, their home directory and processes")
    sp.add_argument("username")
    sp.add_argument("-f", "--force", action="store_true", help="Skip the confirmation prompts")
    sp.set_defaults(func=cmd_delete_user)

    sp = sub.add_parser("reset-password", help="Set a new password, or remove it with --disable")
    sp.add_argument("username")
    sp.add_argument("--disable", action="store_true", help="Delete the password (passwd -d)")
    sp.set_defaults(func=cmd_reset_password)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
