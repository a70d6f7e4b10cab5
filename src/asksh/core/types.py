"""Shared core dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TurnState(str, Enum):
    """States of the turn controller."""

    DETECT_LANGUAGE = "detect_language"
    PROPOSE = "propose"
    GUARD_CHECK = "guard_check"
    EXECUTE = "execute"
    OBSERVE = "observe"
    DECIDE = "decide"
    TERMINATE = "terminate"


class Disposition(str, Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    AWAITING_OUTPUT = "awaiting-output"
    BLOCKED_DUPLICATE = "blocked-duplicate"
    ABORTED = "aborted"
    STEP_LIMIT = "step-limit"
    FAILED = "failed"


class GuardVerdict(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"
    ALLOW_WITH_JUSTIFICATION = "allow_with_justification"


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one gateway call."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = 0
    truncated: bool = False
    pending: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.exit_code == 0

    @property
    def status(self) -> str:
        if self.pending:
            return "pending"
        return "ok" if self.ok else "error"


@dataclass(frozen=True)
class CommandRecord:
    """One executed command as stored in the ledger."""

    index: int
    command: str
    signature: str
    result: ExecutionResult
    turn: int = 0
    justification: str | None = None
    approved: bool = True


@dataclass(frozen=True)
class GuardDecision:
    """Guard outcome for one candidate command."""

    verdict: GuardVerdict
    command: str
    signature: str
    reason: str = ""
    justification: str | None = None
    matched_index: int | None = None

    @property
    def allowed(self) -> bool:
        return self.verdict is not GuardVerdict.REJECT


@dataclass(frozen=True)
class Proposal:
    """Candidate commands from the generation engine."""

    explanation: str
    commands: tuple[str, ...] = ()
    justification: str | None = None


@dataclass(frozen=True)
class Verdict:
    """Engine judgment on whether the last outcome answers the request."""

    conclusive: bool
    summary: str = ""


@dataclass(frozen=True)
class OutputSegment:
    """One piece of user-facing output, tagged with the turn language."""

    kind: str  # explanation|commands|summary|notice
    text: str
    language: str


@dataclass
class TurnContext:
    """Everything the generation engine may look at for one step."""

    request: str
    language: str
    turn: int
    history: list[CommandRecord] = field(default_factory=list)
    turn_records: list[CommandRecord] = field(default_factory=list)
    rejections: list[GuardDecision] = field(default_factory=list)
    transcript: list[tuple[str, str]] = field(default_factory=list)
    step: int = 0

    @property
    def last_record(self) -> CommandRecord | None:
        return self.turn_records[-1] if self.turn_records else None


@dataclass(frozen=True)
class TurnResult:
    """Result of one complete user turn."""

    turn: int
    request: str
    language: str
    disposition: Disposition
    segments: list[OutputSegment] = field(default_factory=list)
    records: list[CommandRecord] = field(default_factory=list)
    rejections: int = 0
    steps: int = 0
    error: str | None = None

    @property
    def summary(self) -> str:
        for segment in reversed(self.segments):
            if segment.kind in {"summary", "notice"}:
                return segment.text
        return ""
