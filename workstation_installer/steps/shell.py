from __future__ import annotations

import logging
from typing import List

from ..lib import users
from ..lib.dotfiles import append_block
from ..resources import file_marker
from ..step_runner import Step
from .base import Catalog, marker_line

logger = logging.getLogger(__name__)

ALIASES_MARKER = marker_line("Terminal Aliases Configuration")
HISTORY_MARKER = marker_line("Shell History Configuration")

ALIASES_BLOCK = """\
alias ll='ls -alF'
alias la='ls -A'
alias l='ls -CF'
alias ..='cd ..'
alias ...='cd ../..'
alias gs='git status'
alias gd='git diff'
alias gl='git log --oneline --graph --decorate'
alias dps='docker ps'
alias dcu='docker compose up -d'
alias dcd='docker compose down'
command -v batcat >/dev/null 2>&1 && alias bat='batcat'
"""

HISTORY_BLOCK = """\
HISTSIZE=10000
HISTFILESIZE=20000
HISTCONTROL=ignoreboth:erasedups
shopt -s histappend
[ -f /usr/share/doc/fzf/examples/key-bindings.bash ] && . /usr/share/doc/fzf/examples/key-bindings.bash
[ -f /usr/share/bash-completion/bash_completion ] && . /usr/share/bash-completion/bash_completion
"""

BLOCKS = [
    ("aliases", ALIASES_MARKER, ALIASES_BLOCK),
    ("history", HISTORY_MARKER, HISTORY_BLOCK),
]


def shell_steps(cat: Catalog) -> List[Step]:
    bashrc = f"{cat.home}/.bashrc"

    def insert(marker: str, body: str) -> None:
        append_block(bashrc, marker, body)
        users.chown_to(cat.user, bashrc)

    return [
        cat.step(
            name=f"shell:{key}",
            resource=file_marker(f"bashrc-{key}", bashrc, marker),
            action=lambda marker=marker, body=body: insert(marker, body),
            backup_paths=(bashrc,),
        )
        for key, marker, body in BLOCKS
    ]
