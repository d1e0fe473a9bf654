from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .context import Target
from .pipeline import OutcomeStatus, PipelineResult

logger = logging.getLogger(__name__)


_STATUS_STYLE = {
    OutcomeStatus.SUCCESS: "green",
    OutcomeStatus.SKIPPED: "cyan",
    OutcomeStatus.WARNING: "yellow",
    OutcomeStatus.FAILED: "bold red",
}


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"json", "yaml", "yml"}:
        return ext
    # Default to JSON for unknown extensions.
    return "json"


def result_to_dict(result: PipelineResult, target: Target) -> Dict[str, Any]:
    return {
        "target": {"name": target.name, "home_dir": str(target.home_dir)},
        "status": result.status.value,
        "aborted_at": result.aborted_at,
        "counts": result.counts(),
        "steps": [
            {"step": o.step_id, "status": o.status.value, "reason": o.reason}
            for o in result.outcomes
        ],
    }


def save_report(path: str, result: PipelineResult, target: Target) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = result_to_dict(result, target)

    fmt = _detect_format(p)
    if fmt in {"yaml", "yml"}:
        try:
            import yaml  # type: ignore
        except Exception as e:  # pragma: no cover
            raise RuntimeError("YAML report requested but PyYAML is not available.") from e
        p.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    else:
        p.write_text(json.dumps(data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.info("Run report written to %s", p)


def render_summary(result: PipelineResult, target: Target, console: Console | None = None) -> None:
    """Print the per-step outcome table and totals."""

    console = console or Console()
    table = Table(title=escape(f"Provisioning summary for {target.name} ({target.home_dir})"), expand=True)
    table.add_column("Step", style="bold")
    table.add_column("Outcome", justify="center")
    table.add_column("Details", ratio=3)

    for o in result.outcomes:
        style = _STATUS_STYLE[o.status]
        table.add_row(o.step_id, f"[{style}]{o.status.value.upper()}[/]", escape(o.reason))

    console.print(table)

    c = result.counts()
    console.print(
        f"Attempted {c['attempted']}: "
        f"[green]{c['success']} succeeded[/] | "
        f"[cyan]{c['skipped']} skipped[/] | "
        f"[yellow]{c['warning']} warned[/] | "
        f"[red]{c['failed']} failed[/]"
    )
    if result.aborted_at:
        console.print(f"[bold red]Aborted: critical step {result.aborted_at} failed[/]")
    else:
        console.print("[bold green]Provisioning finished[/]")
