"""Session state owned by one orchestrator."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from contextvars import ContextVar, Token
from dataclasses import dataclass, field

from loguru import logger

from asksh.core.commands import command_signature
from asksh.core.language import LanguageDetector
from asksh.core.types import Disposition
from asksh.errors import AskShError
from asksh.ledger import Ledger

_session_context: ContextVar[str] = ContextVar("session")


def current_session() -> str:
    """Get the id of the session active in this context."""
    return _session_context.get("-")


@dataclass
class Turn:
    """One user request and everything the controller did for it."""

    index: int
    request: str
    language: str
    disposition: Disposition | None = None
    summary: str = ""
    proposed_commands: bool = False
    record_indices: list[int] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        return self.disposition is not None


class Session:
    """One conversation: its turns, its language and its ledger."""

    def __init__(
        self,
        *,
        ledger: Ledger | None = None,
        detector: LanguageDetector | None = None,
        signer: Callable[[str], str] = command_signature,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex[:8]
        self.ledger = ledger if ledger is not None else Ledger()
        self.detector = detector or LanguageDetector()
        self._signer = signer
        self._turns: list[Turn] = []
        self._aborted = False
        self._closed = False
        self._context_token: Token[str] | None = None

    def __enter__(self) -> Session:
        self._context_token = _session_context.set(self.id)
        logger.info("session.start id={}", self.id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        if self._context_token is not None:
            _session_context.reset(self._context_token)
            self._context_token = None

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    @property
    def language(self) -> str | None:
        return self._turns[-1].language if self._turns else None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def closed(self) -> bool:
        return self._closed

    def signature(self, command: str) -> str:
        return self._signer(command)

    def abort(self) -> None:
        """Stop the running turn at its next state boundary."""
        if not self._aborted:
            logger.info("session.abort id={}", self.id)
        self._aborted = True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("session.end id={} turns={} records={}", self.id, len(self._turns), len(self.ledger))

    def begin_turn(self, request: str) -> Turn:
        if self._closed or self._aborted:
            raise AskShError(f"session {self.id} no longer accepts turns")
        if self._turns and not self._turns[-1].closed:
            raise AskShError(f"turn {self._turns[-1].index} is still open")
        language = self.detector.detect(request, previous=self.language)
        turn = Turn(index=len(self._turns) + 1, request=request, language=language)
        self._turns.append(turn)
        logger.info("turn.start turn={} language={}", turn.index, language)
        return turn

    def close_turn(self, turn: Turn, disposition: Disposition, *, summary: str = "") -> None:
        turn.disposition = disposition
        turn.summary = summary
        logger.info("turn.end turn={} disposition={}", turn.index, disposition.value)

    def last_turn_proposed_commands(self) -> bool:
        """Whether the latest closed turn's response was a command proposal."""
        closed = [turn for turn in self._turns if turn.closed]
        return bool(closed) and closed[-1].proposed_commands

    def transcript(self) -> list[tuple[str, str]]:
        return [(turn.request, turn.summary) for turn in self._turns if turn.closed]
