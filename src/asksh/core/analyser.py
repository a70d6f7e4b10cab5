"""Classify commands that should be approved before running."""

from __future__ import annotations

from dataclasses import dataclass

from asksh.core.commands import parse_command_words

FILE_COMMANDS = frozenset({
    "rm", "rmdir", "mv", "cp", "dd", "touch", "mkdir", "ln", "chmod", "chown", "chgrp",
    "shred", "nano", "vim", "vi", "emacs", "sed", "tee", "truncate", "split", ">>", ">",
})
PACKAGE_MANAGERS = frozenset({
    "brew", "apt", "apt-get", "yum", "dnf", "pacman", "npm", "yarn", "pnpm", "pip", "pip3",
    "cargo", "gem", "go", "composer", "mvn", "gradle", "snap", "flatpak", "apk", "zypper",
})
NETWORK_COMMANDS = frozenset({
    "curl", "wget", "fetch", "http", "scp", "rsync", "ssh", "sftp", "ftp", "nc", "netcat", "telnet",
})
SYSTEM_COMMANDS = frozenset({
    "systemctl", "service", "launchctl", "export", "source", "chsh", "usermod", "useradd",
    "userdel", "groupadd", "groupdel", "passwd", "sudo", "su", "mount", "umount", "sysctl", "modprobe",
})
SYSTEM_PATHS = ("/etc/", "/sys/")
DB_COMMANDS = frozenset({
    "mysql", "psql", "sqlite", "sqlite3", "mongo", "mongosh", "redis-cli", "influx", "cql", "cqlsh",
})
SQL_KEYWORDS = ("DROP", "DELETE", "UPDATE", "INSERT", "ALTER", "CREATE")
DANGEROUS_PATTERNS = ("/dev/", "rm -rf", "rm -fr", ":(){ :|:& };:", "mkfs", "format")
DANGEROUS_COMMANDS = frozenset({
    "eval", "exec", "sh", "bash", "zsh", "python", "perl", "ruby", "kill", "killall",
    "pkill", "reboot", "shutdown", "halt", "crontab", "at", "batch",
})
GIT_LOCAL_MODIFY = (
    "git add", "git commit", "git checkout", "git switch", "git restore", "git merge", "git rebase",
    "git cherry-pick", "git revert", "git stash", "git rm", "git mv", "git apply", "git am",
    "git reset", "git submodule",
)
GIT_NETWORK = (
    "git clone", "git fetch", "git pull", "git push", "git remote add", "git remote remove",
    "git remote set-url",
)
GIT_WORKTREE = ("git worktree add", "git worktree remove")
GIT_DESTRUCTIVE = (
    "reset --hard", "clean -f", "clean -d", "clean -x", "branch -d", "push --force", "push -f",
    "push --mirror", "filter-branch", "reflog delete", "reflog expire", "prune", "gc --prune",
)


@dataclass(frozen=True)
class ApprovalCheck:
    """Whether a command needs approval, and why."""

    required: bool
    reason: str | None = None


SAFE = ApprovalCheck(required=False)


def requires_approval(command: str) -> ApprovalCheck:
    """Classify ``command``; read-only commands do not need approval."""

    cmd = command.strip()
    base = base_command(cmd)

    if base == "git":
        return _check_git(cmd)
    if base in FILE_COMMANDS or base.startswith("write") or base.endswith("fs"):
        return ApprovalCheck(True, "modifies files or system state")
    if base in PACKAGE_MANAGERS or base.startswith("install"):
        return ApprovalCheck(True, "installs or manages software")
    if base in NETWORK_COMMANDS:
        return ApprovalCheck(True, "performs network operations")
    if any(path in cmd for path in SYSTEM_PATHS) or base in SYSTEM_COMMANDS:
        return ApprovalCheck(True, "modifies system configuration")
    if base in DB_COMMANDS or any(keyword in cmd for keyword in SQL_KEYWORDS):
        return ApprovalCheck(True, "performs database operations")
    if any(pattern in cmd for pattern in DANGEROUS_PATTERNS) or base in DANGEROUS_COMMANDS:
        return ApprovalCheck(True, "potentially risky operation")
    return SAFE


def base_command(command: str) -> str:
    """Return the first program name, skipping env assignments and pipes."""

    for word in parse_command_words(command) or command.split():
        if "=" in word:
            continue
        return word.split("|", 1)[0].lower()
    return ""


def _check_git(command: str) -> ApprovalCheck:
    lowered = command.lower()
    if (
        lowered.startswith(GIT_LOCAL_MODIFY + GIT_NETWORK + GIT_WORKTREE)
        or (lowered.startswith("git config") and "--list" not in lowered and "--get" not in lowered)
    ):
        return ApprovalCheck(True, "modifies git repository or remote")
    if any(pattern in lowered for pattern in GIT_DESTRUCTIVE):
        return ApprovalCheck(True, "destructive git operation")
    return SAFE
