"""JSONL mirror for ledger records."""

from __future__ import annotations

import json
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from asksh.core.types import CommandRecord, ExecutionResult

LEDGER_FILE_SUFFIX = ".jsonl"


class LedgerFile:
    """Append-only JSONL file holding one session's command records."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._read_records: list[CommandRecord] = []
        self._read_offset = 0

    def _reset(self) -> None:
        self._read_records = []
        self._read_offset = 0

    def read(self) -> list[CommandRecord]:
        with self._lock:
            return self._read_locked()

    def _read_locked(self) -> list[CommandRecord]:
        if not self.path.exists():
            self._reset()
            return []

        file_size = self.path.stat().st_size
        if file_size < self._read_offset:
            # The file was truncated or replaced, so cached records are stale.
            self._reset()

        with self.path.open("r", encoding="utf-8") as handle:
            handle.seek(self._read_offset)
            for raw_line in handle:
                line = raw_line.strip()
                if not line:
                    continue
                try:
                    payload = json.loads(line)
                except json.JSONDecodeError:
                    continue
                record = self.record_from_payload(payload)
                if record is not None:
                    self._read_records.append(record)
            self._read_offset = handle.tell()

        return list(self._read_records)

    @staticmethod
    def record_to_payload(record: CommandRecord) -> dict[str, Any]:
        return {
            "index": record.index,
            "turn": record.turn,
            "command": record.command,
            "signature": record.signature,
            "justification": record.justification,
            "approved": record.approved,
            "result": {
                "stdout": record.result.stdout,
                "stderr": record.result.stderr,
                "exit_code": record.result.exit_code,
                "truncated": record.result.truncated,
                "pending": record.result.pending,
                "error": record.result.error,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        }

    @staticmethod
    def record_from_payload(payload: object) -> CommandRecord | None:
        if not isinstance(payload, dict):
            return None
        index = payload.get("index")
        command = payload.get("command")
        signature = payload.get("signature")
        result = payload.get("result")
        if not isinstance(index, int):
            return None
        if not isinstance(command, str) or not isinstance(signature, str):
            return None
        if not isinstance(result, dict):
            result = {}
        exit_code = result.get("exit_code")
        justification = payload.get("justification")
        return CommandRecord(
            index=index,
            command=command,
            signature=signature,
            result=ExecutionResult(
                stdout=str(result.get("stdout", "")),
                stderr=str(result.get("stderr", "")),
                exit_code=exit_code if isinstance(exit_code, int) else None,
                truncated=bool(result.get("truncated", False)),
                pending=bool(result.get("pending", False)),
                error=result.get("error") if isinstance(result.get("error"), str) else None,
            ),
            turn=payload.get("turn", 0) if isinstance(payload.get("turn"), int) else 0,
            justification=justification if isinstance(justification, str) else None,
            approved=bool(payload.get("approved", True)),
        )

    def append(self, record: CommandRecord) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(self.record_to_payload(record), ensure_ascii=False) + "\n")

    def archive(self) -> Path | None:
        if not self.path.exists():
            return None
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        archive_file = self.path.with_suffix(f"{LEDGER_FILE_SUFFIX}.{stamp}.bak")
        self.path.replace(archive_file)
        with self._lock:
            self._reset()
        return archive_file
