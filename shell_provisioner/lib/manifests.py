from __future__ import annotations

from pathlib import Path
from typing import Any, Dict


def _manifests_dir() -> Path:
    # shell_provisioner/lib/manifests.py -> shell_provisioner/manifests
    return Path(__file__).resolve().parents[1] / "manifests"


def load_yaml(path: str | Path) -> Dict[str, Any]:
    """Load a YAML mapping; an empty file yields {}."""
    try:
        import yaml  # type: ignore
    except Exception as e:  # pragma: no cover
        raise RuntimeError("PyYAML required to load manifests") from e

    p = Path(path)
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Manifest must be a mapping/dict: {p}")
    return data


def load_defaults() -> Dict[str, Any]:
    return load_yaml(_manifests_dir() / "defaults.yaml")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict: mappings merge recursively, everything else in `override` wins."""
    out = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out
