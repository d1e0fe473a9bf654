from __future__ import annotations

from shell_provisioner.dotfiles import (
    TmuxConfig,
    ZshrcConfig,
    render_neofetch_conf,
    render_tmux_conf,
    render_zshrc,
)


def test_zshrc_from_mapping_and_render() -> None:
    cfg = ZshrcConfig.from_mapping(
        {
            "theme": "agnoster",
            "plugins": ["git", "docker"],
            "aliases": {"ll": "ls -alF", "gs": "git status"},
            "history_size": 5000,
        },
        default_user="deploy",
    )
    out = render_zshrc(cfg)

    assert 'ZSH_THEME="agnoster"' in out
    assert "plugins=(\n    git\n    docker\n)" in out
    assert "alias ll='ls -alF'" in out
    assert "alias gs='git status'" in out
    assert "HISTSIZE=5000" in out
    assert 'DEFAULT_USER="deploy"' in out
    assert "prompt_context()" in out


def test_zshrc_without_default_user_has_no_prompt_override() -> None:
    out = render_zshrc(ZshrcConfig())

    assert 'ZSH_THEME="robbyrussell"' in out
    assert "prompt_context" not in out


def test_zshrc_render_is_deterministic() -> None:
    cfg = ZshrcConfig(aliases=(("x", "echo it's"),))

    assert render_zshrc(cfg) == render_zshrc(cfg)


def test_tmux_conf() -> None:
    out = render_tmux_conf(TmuxConfig.from_mapping({"mouse": False, "history_limit": 20000, "base_index": 0}))

    assert "set -g mouse off" in out
    assert "set -g history-limit 20000" in out
    assert "set -g base-index 0" in out
    assert "bind | split-window -h" in out


def test_neofetch_conf() -> None:
    out = render_neofetch_conf([("title", ""), ("OS", "distro"), ("Kernel", "kernel")])

    assert "    info title\n" in out
    assert '    info "OS" distro\n' in out
    assert 'image_backend="ascii"' in out
