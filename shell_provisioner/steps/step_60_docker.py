from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import List

from ..context import ProvisionCtx
from ..lib.command import command_exists, run_cmd
from ..lib.net import FetchError, download, fetch_text
from ..lib.pkg import install_many
from ..pipeline import Criticality
from .step_15_sudo_access import GroupAccessStep

logger = logging.getLogger(__name__)


DOCKER_PREREQS = ["ca-certificates", "curl", "gnupg", "lsb-release"]


def _detect_distro() -> tuple[str, str]:
    distro = run_cmd(["lsb_release", "-is"]).stdout.strip().lower()
    codename = run_cmd(["lsb_release", "-cs"]).stdout.strip()
    return distro, codename


class InstallDockerStep:
    step_id = "60_docker"
    criticality = Criticality.BEST_EFFORT

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return command_exists("docker")

    def _install_keyring(self, ctx: ProvisionCtx, keyring: Path) -> None:
        if not ctx.dry_run:
            keyring.parent.mkdir(parents=True, exist_ok=True)
        for url in ctx.cfg.docker.get("gpg_urls") or []:
            try:
                armored = fetch_text(str(url))
            except FetchError as e:
                logger.warning("Failed to fetch Docker GPG key from %s: %s", url, e)
                continue
            r = run_cmd(
                ["gpg", "--dearmor", "--yes", "-o", str(keyring)],
                check=False,
                input_text=armored,
                dry_run=ctx.dry_run,
            )
            if r.ok:
                if not ctx.dry_run:
                    os.chmod(keyring, 0o644)
                logger.info("Docker GPG key added from %s", url)
                return
        raise RuntimeError("Failed to add Docker GPG key")

    def run(self, ctx: ProvisionCtx) -> List[str]:
        docker = ctx.cfg.docker
        warnings: list[str] = []

        failed = install_many(ctx.packages, DOCKER_PREREQS)
        if failed:
            warnings.append(f"prerequisites failed: {' '.join(failed)}")

        keyring = Path(str(docker.get("keyring")))
        self._install_keyring(ctx, keyring)

        distro, codename = _detect_distro()
        if distro not in {"ubuntu", "debian"}:
            logger.warning("Unsupported distribution %s, using the Debian repository", distro)
            warnings.append(f"unsupported distribution {distro}, used debian repository")
            distro = "debian"
        arch = run_cmd(["dpkg", "--print-architecture"]).stdout.strip()
        line = (
            f"deb [arch={arch} signed-by={keyring}] "
            f"https://download.docker.com/linux/{distro} {codename} stable\n"
        )
        sources = Path(str(docker.get("sources_list")))
        if ctx.dry_run:
            logger.info("Would write %s: %s", sources, line.strip())
        else:
            sources.write_text(line, encoding="utf-8")
            logger.info("Docker repository added: %s", sources)

        if not ctx.packages.update():
            warnings.append("apt-get update failed after adding the Docker repository")

        failed = install_many(ctx.packages, [str(p) for p in docker.get("packages") or []])
        if failed:
            warnings.append(f"failed packages: {' '.join(failed)}")

        if not ctx.dry_run and not command_exists("docker"):
            raise RuntimeError("Docker installation failed: docker not on PATH")
        return warnings


class DockerComposeStep:
    step_id = "62_docker_compose"
    criticality = Criticality.BEST_EFFORT

    def _plugin_works(self) -> bool:
        return run_cmd(["docker", "compose", "version"], check=False).ok

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return command_exists("docker-compose") or self._plugin_works()

    def run(self, ctx: ProvisionCtx) -> List[str]:
        if ctx.packages.install("docker-compose-plugin") and (ctx.dry_run or self._plugin_works()):
            logger.info("Docker Compose plugin installed")
            return []
        logger.warning("docker-compose-plugin unavailable, trying the docker-compose package")

        if ctx.packages.install("docker-compose") and (ctx.dry_run or command_exists("docker-compose")):
            logger.info("docker-compose package installed")
            return []
        logger.warning("docker-compose package unavailable, downloading the release binary")

        docker = ctx.cfg.docker
        url = str(docker.get("compose_url")).format(
            version=docker.get("compose_version"),
            system=platform.system(),
            machine=platform.machine(),
        )
        dest = Path(str(docker.get("compose_dest")))
        download(url, dest, dry_run=ctx.dry_run)
        if not ctx.dry_run:
            os.chmod(dest, 0o755)
            if not command_exists("docker-compose"):
                raise RuntimeError("Failed to install Docker Compose")
        return []


class DockerAccessStep(GroupAccessStep):
    def __init__(self) -> None:
        super().__init__("docker", step_id="64_docker_access", create_group=True)


class DockerServiceStep:
    step_id = "66_docker_service"
    criticality = Criticality.BEST_EFFORT

    def _active(self) -> bool:
        return run_cmd(["systemctl", "is-active", "--quiet", "docker"], check=False).ok

    def is_satisfied(self, ctx: ProvisionCtx) -> bool:
        return command_exists("systemctl") and self._active()

    def run(self, ctx: ProvisionCtx) -> List[str]:
        if not command_exists("systemctl"):
            raise RuntimeError("systemctl not available, skipping Docker service configuration")

        warnings: list[str] = []
        if not run_cmd(["systemctl", "enable", "docker"], check=False, dry_run=ctx.dry_run).ok:
            warnings.append("failed to enable docker.service")
        if not run_cmd(["systemctl", "start", "docker"], check=False, dry_run=ctx.dry_run).ok:
            warnings.append("failed to start docker.service")

        if not ctx.dry_run and not self._active():
            raise RuntimeError("Docker service is not running")
        return warnings
