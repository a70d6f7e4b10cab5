"""Host details rendered into prompts."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass


@dataclass(frozen=True)
class UserSystemInfo:
    os: str
    arch: str
    shell: str

    @classmethod
    def collect(cls) -> UserSystemInfo:
        return cls(os=platform.system().lower() or "unknown", arch=platform.machine() or "unknown", shell=user_shell())


def user_shell() -> str:
    """Return the user's shell, guessing from version variables when unset."""
    if shell := os.environ.get("SHELL"):
        return shell
    if os.environ.get("BASH_VERSION"):
        return "Bash"
    if os.environ.get("ZSH_VERSION"):
        return "zsh"
    return "Unknown"
