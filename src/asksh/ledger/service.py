"""Session-scoped command history ledger."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

from loguru import logger

from asksh.core.commands import truncate_output
from asksh.core.types import CommandRecord, ExecutionResult
from asksh.errors import LedgerAppendFailure
from asksh.ledger.store import LedgerFile

DEFAULT_RETENTION = 500
DEFAULT_MAX_OUTPUT_CHARS = 4000


@dataclass(frozen=True)
class LedgerInfo:
    """Runtime ledger summary."""

    records: int
    evicted: int
    next_index: int
    mirrored: bool


class Ledger:
    """Append-only record of the commands executed in one session."""

    def __init__(
        self,
        *,
        retention: int = DEFAULT_RETENTION,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
        mirror: LedgerFile | None = None,
    ) -> None:
        if retention < 1:
            raise ValueError("retention must be positive")
        self._retention = retention
        self._max_output_chars = max_output_chars
        self._records: deque[CommandRecord] = deque()
        self._mirror = mirror
        self._next_index = 1
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CommandRecord]:
        return iter(tuple(self._records))

    @property
    def records(self) -> tuple[CommandRecord, ...]:
        return tuple(self._records)

    def last(self) -> CommandRecord | None:
        return self._records[-1] if self._records else None

    def for_turn(self, turn: int) -> list[CommandRecord]:
        return [record for record in self._records if record.turn == turn]

    def find_similar(self, signature: str) -> list[CommandRecord]:
        """Return prior records whose signature equals ``signature``."""
        return [record for record in self._records if record.signature == signature]

    def append(
        self,
        command: str,
        result: ExecutionResult,
        *,
        signature: str,
        turn: int = 0,
        justification: str | None = None,
        approved: bool = True,
    ) -> int:
        record = CommandRecord(
            index=self._next_index,
            command=command,
            signature=signature,
            result=self._clip(result),
            turn=turn,
            justification=justification,
            approved=approved,
        )
        try:
            self._reserve_slot()
        except LedgerAppendFailure:
            self._evict_oldest()
        self._records.append(record)
        self._next_index += 1
        self._write_mirror(record)
        logger.debug("ledger.append index={} signature={}", record.index, record.signature)
        return record.index

    def info(self) -> LedgerInfo:
        return LedgerInfo(
            records=len(self._records),
            evicted=self._evicted,
            next_index=self._next_index,
            mirrored=self._mirror is not None,
        )

    def _reserve_slot(self) -> None:
        if len(self._records) >= self._retention:
            raise LedgerAppendFailure(f"retention window of {self._retention} records is full")

    def _evict_oldest(self) -> None:
        evicted = self._records.popleft()
        self._evicted += 1
        logger.warning("ledger.evict index={} retention={}", evicted.index, self._retention)

    def _write_mirror(self, record: CommandRecord) -> None:
        if self._mirror is None:
            return
        try:
            self._mirror.append(record)
        except OSError as exc:
            logger.warning("ledger.mirror.disabled path={} error={}", self._mirror.path, exc)
            self._mirror = None

    def _clip(self, result: ExecutionResult) -> ExecutionResult:
        stdout, stdout_cut = truncate_output(result.stdout, self._max_output_chars)
        stderr, stderr_cut = truncate_output(result.stderr, self._max_output_chars)
        if not (stdout_cut or stderr_cut):
            return result
        return ExecutionResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=result.exit_code,
            truncated=True,
            pending=result.pending,
            error=result.error,
        )
