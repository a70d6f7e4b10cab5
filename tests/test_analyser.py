import pytest

from asksh.core.analyser import base_command, requires_approval


@pytest.mark.parametrize(
    "command",
    ["ls -la", "date", "git status", "git log --oneline", "git config --list", "cat notes.txt", "echo hello"],
)
def test_read_only_commands_pass(command: str) -> None:
    check = requires_approval(command)
    assert not check.required
    assert check.reason is None


@pytest.mark.parametrize(
    ("command", "reason"),
    [
        ("rm notes.txt", "modifies files or system state"),
        ("mkfs.ext4 /dev/sdb1", "potentially risky operation"),
        ("apt-get install jq", "installs or manages software"),
        ("curl https://example.com", "performs network operations"),
        ("cat /etc/hosts", "modifies system configuration"),
        ("sudo reboot", "modifies system configuration"),
        ("psql -c 'select 1'", "performs database operations"),
        ("echo 'DROP TABLE users'", "performs database operations"),
        ("kill -9 1234", "potentially risky operation"),
        ("git push origin main", "modifies git repository or remote"),
        ("git config user.name me", "modifies git repository or remote"),
        ("git branch -D feature", "destructive git operation"),
        ("git gc --prune=now", "destructive git operation"),
    ],
)
def test_state_changing_commands_need_approval(command: str, reason: str) -> None:
    check = requires_approval(command)
    assert check.required
    assert check.reason == reason


def test_base_command_skips_env_assignments() -> None:
    assert base_command("PAGER=cat GIT_PAGER=cat git log") == "git"
    assert base_command("LS|head") == "ls"
    assert base_command("   ") == ""
