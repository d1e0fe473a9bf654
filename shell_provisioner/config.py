from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .lib.manifests import deep_merge, load_defaults, load_yaml


@dataclass(frozen=True)
class ProvisionConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        return dict(self.raw.get(name) or {})

    @property
    def username(self) -> str:
        return str(self.raw.get("username") or "deploy")

    @property
    def log_path(self) -> str:
        return str(self.raw.get("log_path") or "/var/log/shell-provisioner.log")

    @property
    def sudo(self) -> bool:
        return bool(self.raw.get("sudo", True))

    @property
    def apt_retries(self) -> int:
        return int(self._section("apt").get("retries", 3))

    @property
    def apt_retry_delay(self) -> float:
        return float(self._section("apt").get("retry_delay", 2))

    @property
    def package_groups(self) -> List[Tuple[str, List[str]]]:
        groups = self.raw.get("package_groups") or {}
        if not isinstance(groups, dict):
            raise ValueError("package_groups must be a mapping of group -> list of packages")
        out: list[tuple[str, list[str]]] = []
        for name, pkgs in groups.items():
            if not isinstance(pkgs, list):
                raise ValueError(f"package group {name} must be a list")
            out.append((str(name), [str(p).strip() for p in pkgs if str(p).strip()]))
        return out

    @property
    def oh_my_zsh(self) -> Dict[str, Any]:
        return self._section("oh_my_zsh")

    @property
    def update_plugins(self) -> bool:
        return bool(self.oh_my_zsh.get("update", False))

    @property
    def zsh_plugin_repos(self) -> Dict[str, str]:
        return {str(k): str(v) for k, v in (self.oh_my_zsh.get("plugins") or {}).items()}

    @property
    def go(self) -> Dict[str, Any]:
        return self._section("go")

    @property
    def sops(self) -> Dict[str, Any]:
        return self._section("sops")

    @property
    def docker(self) -> Dict[str, Any]:
        return self._section("docker")

    @property
    def ssh_enabled(self) -> bool:
        return bool(self._section("ssh").get("enabled", False))

    @property
    def ssh_key_url(self) -> str:
        return str(self._section("ssh").get("key_url") or "")

    @property
    def zsh(self) -> Dict[str, Any]:
        return self._section("zsh")

    @property
    def tmux(self) -> Dict[str, Any]:
        return self._section("tmux")

    @property
    def neofetch_info(self) -> List[Tuple[str, str]]:
        rows = self._section("neofetch").get("info") or []
        out: list[tuple[str, str]] = []
        for r in rows:
            # A bare label (title, underline, cols) has no key.
            if isinstance(r, str):
                out.append((r, ""))
            elif isinstance(r, list) and len(r) == 2:
                out.append((str(r[0]), str(r[1] or "")))
            else:
                raise ValueError(f"neofetch info row must be a label or a [label, key] pair: {r!r}")
        return out

    @property
    def min_uid(self) -> int:
        return int(self._section("admin").get("min_uid") or 1000)

    def with_overrides(self, **overrides: Any) -> "ProvisionConfig":
        return ProvisionConfig(raw=deep_merge(self.raw, overrides))


def load_config(path: Optional[str] = None) -> ProvisionConfig:
    """Packaged defaults, with the YAML file at `path` merged on top."""

    raw = load_defaults()
    if path is None:
        return ProvisionConfig(raw=raw)

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("config must be YAML")

    return ProvisionConfig(raw=deep_merge(raw, load_yaml(p)))
