from __future__ import annotations

import re
from pathlib import Path

import pytest

import shell_provisioner.lib.files as files_mod
import shell_provisioner.steps.step_45_ranger_config as ranger_step_mod
import shell_provisioner.steps.step_70_dotfiles as dotfile_step_mod
import shell_provisioner.steps.step_85_ssh_keys as ssh_step_mod
from shell_provisioner.lib.command import CmdResult
from shell_provisioner.lib.sshkeys import InvalidKeyMaterial
from shell_provisioner.pipeline import OutcomeStatus, run_pipeline
from shell_provisioner.steps import (
    DockerAccessStep,
    EnsureUserStep,
    FixOwnershipStep,
    InstallPackagesStep,
    InstallSSHKeysStep,
    RangerConfigStep,
    SudoAccessStep,
    dotfile_steps,
)


@pytest.fixture(autouse=True)
def no_chown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(files_mod, "chown", lambda *a, **kw: None)


@pytest.fixture(autouse=True)
def user_shell(monkeypatch: pytest.MonkeyPatch) -> list:
    calls: list = []

    def fake_run_as(user, shell_cmd, **kw):
        calls.append((user, shell_cmd))
        return CmdResult([user, shell_cmd], 0, "", "")

    monkeypatch.setattr(dotfile_step_mod, "run_as", fake_run_as)
    monkeypatch.setattr(ranger_step_mod, "run_as", fake_run_as)
    return calls


def test_user_and_group_steps_skip_on_second_run(make_ctx, accounts) -> None:
    ctx = make_ctx("deploy")
    steps = [EnsureUserStep(), SudoAccessStep(), DockerAccessStep()]

    first = run_pipeline(ctx=ctx, steps=steps)
    second = run_pipeline(ctx=ctx, steps=steps)

    assert [o.status for o in first.outcomes] == [OutcomeStatus.SUCCESS, OutcomeStatus.WARNING, OutcomeStatus.SUCCESS]
    assert "sudo" in first.outcomes[1].reason
    assert [o.status for o in second.outcomes][0] is OutcomeStatus.SKIPPED
    assert second.outcomes[2].status is OutcomeStatus.SKIPPED
    assert accounts.calls.count(("create_user", "deploy")) == 1


def test_docker_access_keeps_existing_groups(make_ctx, accounts) -> None:
    accounts.add_user("deploy", groups=["sudo"])
    ctx = make_ctx("deploy")

    result = run_pipeline(ctx=ctx, steps=[DockerAccessStep()])

    assert result.outcomes[0].status is OutcomeStatus.SUCCESS
    assert ("create_group", "docker") in accounts.calls
    assert {"sudo", "docker"} <= accounts.user_groups("deploy")


def test_package_group_partial_failure_is_warning(make_ctx, packages) -> None:
    packages.broken.add("caca-utils")
    ctx = make_ctx()

    result = run_pipeline(ctx=ctx, steps=[InstallPackagesStep("ranger", ["ranger", "caca-utils", "w3m"])])

    outcome = result.outcomes[0]
    assert outcome.step_id == "30_packages_ranger"
    assert outcome.status is OutcomeStatus.WARNING
    assert "caca-utils" in outcome.reason
    assert {"ranger", "w3m"} <= packages.installed


def test_package_group_skipped_when_installed(make_ctx, packages) -> None:
    packages.installed.update({"tmux"})

    result = run_pipeline(ctx=make_ctx(), steps=[InstallPackagesStep("tmux", ["tmux"])])

    assert result.outcomes[0].status is OutcomeStatus.SKIPPED
    assert packages.install_calls == []


def test_dotfiles_are_backed_up_on_rerun(make_ctx) -> None:
    ctx = make_ctx("deploy")
    home = ctx.target.home_dir
    (home / ".zshrc").write_text("# hand edited\n")

    result = run_pipeline(ctx=ctx, steps=dotfile_steps())

    assert [o.step_id for o in result.outcomes] == [
        "70_dotfile_zshrc",
        "70_dotfile_tmux_conf",
        "70_dotfile_neofetch_conf",
    ]
    assert all(o.status is OutcomeStatus.SUCCESS for o in result.outcomes)
    backups = [p for p in home.iterdir() if p.name.startswith(".zshrc.backup.")]
    assert len(backups) == 1
    assert re.fullmatch(r"\.zshrc\.backup\.\d{14}", backups[0].name)
    assert backups[0].read_text() == "# hand edited\n"
    assert 'ZSH_THEME="agnoster"' in (home / ".zshrc").read_text()
    assert (home / ".config" / "neofetch" / "config.conf").is_file()
    assert not [p for p in home.iterdir() if p.name.startswith(".tmux.conf.backup.")]


def test_missing_config_dir_created_as_user_when_ranger_fails(
    make_ctx, accounts, user_shell: list, monkeypatch: pytest.MonkeyPatch
) -> None:
    accounts.add_user("deploy")
    monkeypatch.setattr(ranger_step_mod, "command_exists", lambda name: False)
    ctx = make_ctx("deploy")
    assert not ctx.target.path(".config").exists()

    result = run_pipeline(ctx=ctx, steps=[RangerConfigStep(), *dotfile_steps(), FixOwnershipStep()])

    statuses = {o.step_id: o.status for o in result.outcomes}
    assert statuses["45_ranger_config"] is OutcomeStatus.WARNING
    assert statuses["70_dotfile_neofetch_conf"] is OutcomeStatus.SUCCESS
    assert user_shell == [("deploy", "mkdir -p ~/.config/neofetch")]


def test_dotfile_in_home_root_needs_no_mkdir(make_ctx, user_shell: list) -> None:
    ctx = make_ctx("deploy")

    run_pipeline(ctx=ctx, steps=dotfile_steps()[:2])

    assert user_shell == []


def test_ssh_placeholder_url_is_a_warning(make_ctx, accounts) -> None:
    accounts.add_user("deploy")

    result = run_pipeline(ctx=make_ctx("deploy"), steps=[InstallSSHKeysStep()])

    assert result.outcomes[0].status is OutcomeStatus.WARNING
    assert "placeholder" in result.outcomes[0].reason


def _ssh_ctx(make_ctx, accounts, cfg):
    accounts.add_user("deploy")
    ctx = make_ctx("deploy")
    return ctx.__class__(
        target=ctx.target,
        cfg=cfg.with_overrides(ssh={"key_url": "https://github.com/deploy.keys"}),
        accounts=ctx.accounts,
        packages=ctx.packages,
    )


@pytest.fixture
def no_shell(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ssh_step_mod, "run_as", lambda *a, **kw: CmdResult(list(a), 0, "", ""))
    monkeypatch.setattr(ssh_step_mod, "key_fingerprints", lambda keys: [])


def test_ssh_keys_installed(make_ctx, accounts, cfg, monkeypatch: pytest.MonkeyPatch, no_shell) -> None:
    ctx = _ssh_ctx(make_ctx, accounts, cfg)
    monkeypatch.setattr(ssh_step_mod, "fetch_text", lambda url: "ssh-ed25519 AAAAC3Nza deploy@laptop")
    monkeypatch.setattr(ssh_step_mod, "chown", lambda *a, **kw: None)

    assert InstallSSHKeysStep().run(ctx) == []

    keys = ctx.target.path(".ssh/authorized_keys")
    assert keys.read_text() == "ssh-ed25519 AAAAC3Nza deploy@laptop\n"
    assert keys.stat().st_mode & 0o777 == 0o600
    assert ctx.target.path(".ssh").stat().st_mode & 0o777 == 0o700


def test_ssh_keys_rejects_non_key_content(make_ctx, accounts, cfg, monkeypatch: pytest.MonkeyPatch, no_shell) -> None:
    ctx = _ssh_ctx(make_ctx, accounts, cfg)
    monkeypatch.setattr(ssh_step_mod, "fetch_text", lambda url: "<html>Not Found</html>")

    with pytest.raises(InvalidKeyMaterial):
        InstallSSHKeysStep().run(ctx)
    assert not Path(ctx.target.path(".ssh/authorized_keys")).exists()
