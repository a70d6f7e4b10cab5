"""Shell execution gateway."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

from loguru import logger

from asksh.core.commands import truncate_output
from asksh.core.types import ExecutionResult
from asksh.errors import ExecutionFailure, GatewayTimeout

NON_INTERACTIVE_ENV = {
    "PAGER": "cat",
    "GIT_PAGER": "cat",
    "MANPAGER": "cat",
    "SYSTEMD_PAGER": "",
    "GIT_TERMINAL_PROMPT": "0",
    "DEBIAN_FRONTEND": "noninteractive",
}


class SubprocessGateway:
    """Run vetted commands through bash without a terminal attached."""

    def __init__(
        self,
        workspace: Path,
        *,
        timeout_seconds: float = 30.0,
        max_output_chars: int = 4000,
        shell: str | None = None,
    ) -> None:
        self._workspace = workspace
        self._timeout_seconds = timeout_seconds
        self._max_output_chars = max_output_chars
        self._shell = shell or shutil.which("bash") or "bash"

    def execute(self, command: str) -> ExecutionResult:
        env = {**os.environ, **NON_INTERACTIVE_ENV}
        try:
            # Commands reaching here already passed the guard and approval.
            completed = subprocess.run(  # noqa: S603
                [self._shell, "-lc", command],
                cwd=self._workspace,
                env=env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self._timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise GatewayTimeout(command, self._timeout_seconds) from exc
        except (OSError, subprocess.SubprocessError) as exc:
            raise ExecutionFailure(f"{exc!s}") from exc

        stdout, stdout_cut = truncate_output(completed.stdout or "", self._max_output_chars)
        stderr, stderr_cut = truncate_output(completed.stderr or "", self._max_output_chars)
        logger.debug("gateway.exit command={} code={}", command, completed.returncode)
        return ExecutionResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=completed.returncode,
            truncated=stdout_cut or stderr_cut,
        )
