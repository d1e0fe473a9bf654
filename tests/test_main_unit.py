from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from rich.console import Console

import shell_provisioner.main as main_mod
import shell_provisioner.report as report_mod
from shell_provisioner.context import Target
from shell_provisioner.main import build_steps, run
from shell_provisioner.pipeline import Criticality, OutcomeStatus, PipelineResult, StepOutcome
from shell_provisioner.report import render_summary, save_report


class _Step:
    def __init__(self, step_id: str, *, criticality=Criticality.BEST_EFFORT, fail: bool = False) -> None:
        self.step_id = step_id
        self.criticality = criticality
        self.fail = fail

    def is_satisfied(self, ctx) -> bool:
        return False

    def run(self, ctx):
        if self.fail:
            raise RuntimeError(f"{self.step_id} broke")
        return []


@pytest.fixture
def quiet_console(monkeypatch: pytest.MonkeyPatch) -> Console:
    console = Console(record=True, width=120)
    monkeypatch.setattr(report_mod, "Console", lambda: console)
    return console


def test_build_steps_order(cfg) -> None:
    ids = [s.step_id for s in build_steps(cfg)]

    assert ids[:4] == ["00_verify_privileges", "10_ensure_user", "15_sudo_access", "20_refresh_index"]
    assert ids.index("30_packages_basic_tools") < ids.index("30_packages_zsh") < ids.index("40_oh_my_zsh")
    assert ids.index("64_docker_access") < ids.index("70_dotfile_zshrc") < ids.index("80_ownership")
    assert ids[-2:] == ["85_ssh_keys", "90_default_shell"]
    assert len(ids) == len(set(ids))


def test_build_steps_honours_switches(cfg) -> None:
    ids = [s.step_id for s in build_steps(cfg.with_overrides(sudo=False, ssh={"enabled": False}))]

    assert "15_sudo_access" not in ids
    assert "85_ssh_keys" not in ids


def test_run_reports_and_prints_summary(cfg, accounts, packages, tmp_path: Path, quiet_console: Console) -> None:
    steps = [_Step("a"), _Step("b", fail=True), _Step("c")]
    report = tmp_path / "out" / "report.json"

    result = run(cfg=cfg, accounts=accounts, packages=packages, steps=steps, report_path=str(report))

    assert result.ok
    data = json.loads(report.read_text())
    assert data["target"]["name"] == "deploy"
    assert [s["status"] for s in data["steps"]] == ["success", "warning", "success"]
    assert data["counts"]["warning"] == 1
    text = quiet_console.export_text()
    assert "b broke" in text
    assert "Provisioning finished" in text


def test_run_aborts_on_critical(cfg, accounts, packages, quiet_console: Console) -> None:
    steps = [_Step("a", criticality=Criticality.CRITICAL, fail=True), _Step("b")]

    result = run(cfg=cfg, accounts=accounts, packages=packages, steps=steps)

    assert not result.ok
    assert result.aborted_at == "a"
    assert "Aborted" in quiet_console.export_text()


def test_yaml_report(tmp_path: Path) -> None:
    result = PipelineResult(outcomes=[StepOutcome("a", OutcomeStatus.SKIPPED)])
    p = tmp_path / "report.yaml"

    save_report(str(p), result, Target("deploy", Path("/home/deploy")))

    data = yaml.safe_load(p.read_text())
    assert data["status"] == "success"
    assert data["steps"] == [{"step": "a", "status": "skipped", "reason": ""}]


def test_summary_escapes_markup() -> None:
    console = Console(record=True, width=120)
    result = PipelineResult(outcomes=[StepOutcome("a", OutcomeStatus.WARNING, "[red]not markup[/red]")])

    render_summary(result, Target("deploy", Path("/home/deploy")), console=console)

    assert "[red]not markup[/red]" in console.export_text()


@pytest.fixture
def patched_main(monkeypatch: pytest.MonkeyPatch, accounts, packages, quiet_console: Console):
    monkeypatch.setattr(main_mod, "configure_logging", lambda *a, **kw: "")
    monkeypatch.setattr(main_mod, "SystemAccounts", lambda **kw: accounts)
    monkeypatch.setattr(main_mod, "AptPackages", lambda **kw: packages)

    def use_steps(steps):
        monkeypatch.setattr(main_mod, "build_steps", lambda cfg: steps)

    return use_steps


def test_main_exit_status_nonzero_on_critical_failure(patched_main) -> None:
    patched_main([_Step("a"), _Step("b", criticality=Criticality.CRITICAL, fail=True), _Step("c")])

    assert main_mod.main(["--user", "deploy"]) == 1


def test_main_exit_status_zero_when_only_best_effort_steps_fail(patched_main) -> None:
    patched_main([_Step("a", fail=True), _Step("b", fail=True)])

    assert main_mod.main([]) == 0


def test_main_exit_status_zero_on_clean_run(patched_main) -> None:
    patched_main([_Step("a"), _Step("b", criticality=Criticality.CRITICAL)])

    assert main_mod.main(["--dry-run"]) == 0
