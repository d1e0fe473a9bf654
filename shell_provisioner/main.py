from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .config import ProvisionConfig, load_config
from .context import ProvisionCtx, resolve_invoker, resolve_target
from .lib.accounts import SystemAccounts
from .lib.pkg import AptPackages
from .logging_utils import configure_logging
from .pipeline import PipelineResult, Step, run_pipeline
from .report import render_summary, save_report
from .steps import (
    DefaultShellStep,
    DockerAccessStep,
    DockerComposeStep,
    DockerServiceStep,
    EnsureUserStep,
    FixOwnershipStep,
    GoWorkspaceStep,
    InstallDockerStep,
    InstallGoStep,
    InstallPackagesStep,
    InstallSopsStep,
    InstallSSHKeysStep,
    OhMyZshStep,
    RangerConfigStep,
    RefreshIndexStep,
    SudoAccessStep,
    VerifyPrivilegesStep,
    ZshPluginsStep,
    dotfile_steps,
)

logger = logging.getLogger(__name__)


def build_steps(cfg: ProvisionConfig) -> List[Step]:
    steps: List[Step] = [VerifyPrivilegesStep(), EnsureUserStep()]
    if cfg.sudo:
        steps.append(SudoAccessStep())
    steps.append(RefreshIndexStep())
    steps += [InstallPackagesStep(group, pkgs) for group, pkgs in cfg.package_groups]
    steps += [
        OhMyZshStep(),
        ZshPluginsStep(),
        RangerConfigStep(),
        InstallGoStep(),
        GoWorkspaceStep(),
        InstallSopsStep(),
        InstallDockerStep(),
        DockerComposeStep(),
        DockerAccessStep(),
        DockerServiceStep(),
    ]
    steps += dotfile_steps()
    steps.append(FixOwnershipStep())
    if cfg.ssh_enabled:
        steps.append(InstallSSHKeysStep())
    steps.append(DefaultShellStep())
    return steps


def run(
    *,
    cfg: ProvisionConfig,
    dry_run: bool = False,
    report_path: Optional[str] = None,
    accounts=None,
    packages=None,
    steps: Optional[List[Step]] = None,
) -> PipelineResult:
    """Provision cfg.username and print the summary."""

    if accounts is None:
        accounts = SystemAccounts(dry_run=dry_run)
    if packages is None:
        packages = AptPackages(dry_run=dry_run)

    invoker = resolve_invoker(accounts)
    logger.info("Invoked by %s (home: %s)", invoker.name, invoker.home_dir)

    target = resolve_target(cfg.username, accounts)
    logger.info("Provisioning user %s (home: %s)%s", target.name, target.home_dir, " [dry run]" if dry_run else "")

    ctx = ProvisionCtx(target=target, cfg=cfg, accounts=accounts, packages=packages, dry_run=dry_run)
    result = run_pipeline(ctx=ctx, steps=steps if steps is not None else build_steps(cfg))

    render_summary(result, target)
    if report_path:
        save_report(report_path, result, target)
    return result


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="shell-provisioner")
    p.add_argument("--config", default=None, help="YAML config merged over the packaged defaults")
    p.add_argument("--user", default=None, help="User to provision (default from config: deploy)")
    p.add_argument("--log", default=None, help="Path to log file")
    p.add_argument("--report", default=None, help="Write per-step outcomes to this file (json|yaml)")
    p.add_argument("--dry-run", action="store_true", help="Log commands instead of running them")
    p.add_argument("--update-plugins", action="store_true", help="git pull Oh My Zsh and zsh plugins if present")
    p.add_argument("--no-ssh", action="store_true", help="Skip SSH authorized_keys setup")
    p.add_argument("-v", "--verbose", action="store_true", help="Show command output on the terminal")

    args = p.parse_args(argv)

    cfg = load_config(args.config)
    overrides: dict = {}
    if args.user:
        overrides["username"] = args.user
    if args.log:
        overrides["log_path"] = args.log
    if args.update_plugins:
        overrides["oh_my_zsh"] = {"update": True}
    if args.no_ssh:
        overrides["ssh"] = {"enabled": False}
    if overrides:
        cfg = cfg.with_overrides(**overrides)

    configure_logging(cfg.log_path, verbose=bool(args.verbose))

    result = run(cfg=cfg, dry_run=bool(args.dry_run), report_path=args.report)
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
