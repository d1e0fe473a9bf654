"""Content generators for the managed dotfiles.

Each renderer is a pure function of a small config struct; the option
values themselves live in manifests/defaults.yaml.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class ZshrcConfig:
    theme: str = "robbyrussell"
    plugins: Tuple[str, ...] = ("git",)
    aliases: Tuple[Tuple[str, str], ...] = ()
    default_user: str = ""
    history_size: int = 10000

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], *, default_user: str) -> "ZshrcConfig":
        aliases = raw.get("aliases") or {}
        return cls(
            theme=str(raw.get("theme") or "robbyrussell"),
            plugins=tuple(str(p) for p in (raw.get("plugins") or ["git"])),
            aliases=tuple((str(k), str(v)) for k, v in aliases.items()),
            default_user=default_user,
            history_size=int(raw.get("history_size") or 10000),
        )


@dataclass(frozen=True)
class TmuxConfig:
    mouse: bool = True
    history_limit: int = 10000
    base_index: int = 1
    default_terminal: str = "screen-256color"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "TmuxConfig":
        return cls(
            mouse=bool(raw.get("mouse", True)),
            history_limit=int(raw.get("history_limit") or 10000),
            base_index=int(raw.get("base_index", 1)),
            default_terminal=str(raw.get("default_terminal") or "screen-256color"),
        )


_ZSH_TAIL = r"""
# Sops aliases
if command -v sops &> /dev/null; then
    alias sops-edit='sops edit'
    alias sops-view='sops -d'
    alias sops-encrypt='sops --encrypt'
fi

# bat is packaged as batcat on Debian/Ubuntu
if command -v batcat &> /dev/null; then
    alias bat='batcat'
    alias cat='batcat --paging=never'
elif command -v bat &> /dev/null; then
    alias cat='bat --paging=never'
fi

setopt HIST_IGNORE_ALL_DUPS
setopt HIST_FIND_NO_DUPS
setopt HIST_SAVE_NO_DUPS
setopt SHARE_HISTORY
setopt APPEND_HISTORY
setopt INC_APPEND_HISTORY

bindkey '^[[A' history-beginning-search-backward
bindkey '^[[B' history-beginning-search-forward
bindkey '^[[H' beginning-of-line
bindkey '^[[F' end-of-line
bindkey '^[[3~' delete-char

autoload -Uz compinit
compinit
zstyle ':completion:*' menu select
zstyle ':completion:*' matcher-list 'm:{a-zA-Z}={A-Za-z}'
zstyle ':completion:*' list-colors "${(s.:.)LS_COLORS}"
zstyle ':completion:*' rehash true
zstyle ':completion:*' use-cache on
zstyle ':completion:*' cache-path ~/.zsh/cache

if [ -f ~/.zsh/zsh-autosuggestions/zsh-autosuggestions.zsh ]; then
    source ~/.zsh/zsh-autosuggestions/zsh-autosuggestions.zsh
    ZSH_AUTOSUGGEST_HIGHLIGHT_STYLE='fg=240'
fi
if [ -f ~/.zsh/zsh-syntax-highlighting/zsh-syntax-highlighting.zsh ]; then
    source ~/.zsh/zsh-syntax-highlighting/zsh-syntax-highlighting.zsh
fi

if command -v nvim &> /dev/null; then
    export EDITOR='nvim'
    export VISUAL='nvim'
else
    export EDITOR='vim'
    export VISUAL='vim'
fi
export PAGER='less'

if [ -d /usr/local/go ]; then
    export GOROOT=/usr/local/go
    export GOPATH=$HOME/go
    export PATH=$PATH:$GOROOT/bin:$GOPATH/bin
fi

if command -v neofetch &> /dev/null && [[ $- == *i* ]]; then
    neofetch
fi
"""


def render_zshrc(cfg: ZshrcConfig) -> str:
    lines: list[str] = [
        "# Managed by shell-provisioner; previous versions are kept as .zshrc.backup.*",
        'export ZSH="$HOME/.oh-my-zsh"',
        "",
        f'ZSH_THEME="{cfg.theme}"',
        "",
        "plugins=(",
        *[f"    {p}" for p in cfg.plugins],
        ")",
        "",
        "source $ZSH/oh-my-zsh.sh",
        "",
    ]
    lines += [f"alias {name}={shlex.quote(value)}" for name, value in cfg.aliases]
    lines += [
        "",
        f"HISTSIZE={cfg.history_size}",
        f"SAVEHIST={cfg.history_size}",
    ]
    if cfg.default_user:
        # agnoster: hide user@host for the default user on local sessions
        lines += [
            "",
            f'DEFAULT_USER="{cfg.default_user}"',
            "prompt_context() {",
            '  if [[ "$USER" != "$DEFAULT_USER" || -n "$SSH_CLIENT" ]]; then',
            '    prompt_segment black default "%(!.%{%F{yellow}%}.)$USER"',
            "  fi",
            "}",
        ]
    return "\n".join(lines) + "\n" + _ZSH_TAIL


_TMUX_BODY = """setw -g mode-keys vi
set -g renumber-windows on

set -g status-style bg=black,fg=white
set -g status-left-length 40
set -g status-left "#[fg=green]Session: #S #[fg=yellow]#I #[fg=cyan]#P"
set -g status-right "#[fg=cyan]%d %b %R"
set -g status-interval 60
set -g status-justify centre

setw -g window-status-style fg=cyan,bg=black
setw -g window-status-current-style fg=white,bold,bg=red
set -g pane-border-style fg=green
set -g pane-active-border-style fg=white,bold
set -g message-style fg=white,bold,bg=black

bind h select-pane -L
bind j select-pane -D
bind k select-pane -U
bind l select-pane -R
bind -r H resize-pane -L 5
bind -r J resize-pane -D 5
bind -r K resize-pane -U 5
bind -r L resize-pane -R 5

bind | split-window -h
bind - split-window -v
unbind '"'
unbind %

bind r source-file ~/.tmux.conf \\; display "Config reloaded!"

bind Escape copy-mode
bind -T copy-mode-vi v send -X begin-selection
bind -T copy-mode-vi y send -X copy-selection-and-cancel

setw -g monitor-activity on
set -g visual-activity on
"""


def render_tmux_conf(cfg: TmuxConfig) -> str:
    head = [
        "# Managed by shell-provisioner",
        f"set -g mouse {'on' if cfg.mouse else 'off'}",
        f"set -g base-index {cfg.base_index}",
        f"setw -g pane-base-index {cfg.base_index}",
        f"set -g history-limit {cfg.history_limit}",
        f'set -g default-terminal "{cfg.default_terminal}"',
        "",
    ]
    return "\n".join(head) + _TMUX_BODY


_NEOFETCH_OPTIONS: Dict[str, str] = {
    "title_fqdn": '"off"',
    "kernel_shorthand": '"on"',
    "distro_shorthand": '"off"',
    "os_arch": '"on"',
    "uptime_shorthand": '"on"',
    "memory_percent": '"on"',
    "memory_unit": '"mib"',
    "package_managers": '"on"',
    "shell_path": '"off"',
    "shell_version": '"on"',
    "cpu_brand": '"on"',
    "cpu_speed": '"on"',
    "cpu_cores": '"logical"',
    "cpu_temp": '"off"',
    "gpu_brand": '"on"',
    "gpu_type": '"all"',
    "colors": "(distro)",
    "bold": '"on"',
    "underline_enabled": '"on"',
    "underline_char": '"-"',
    "separator": '":"',
    "color_blocks": '"on"',
    "block_range": "(0 15)",
    "image_backend": '"ascii"',
    "ascii_distro": '"auto"',
    "stdout": '"off"',
}


def render_neofetch_conf(info: Sequence[Tuple[str, str]]) -> str:
    lines: List[str] = ["# Managed by shell-provisioner", "print_info() {"]
    for label, key in info:
        if key:
            lines.append(f'    info "{label}" {key}')
        else:
            lines.append(f"    info {label}")
    lines += ["}", ""]
    lines += [f"{k}={v}" for k, v in _NEOFETCH_OPTIONS.items()]
    return "\n".join(lines) + "\n"
