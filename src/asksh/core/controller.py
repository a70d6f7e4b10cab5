"""Turn controller state machine."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, cast

from loguru import logger

from asksh.core.analyser import requires_approval
from asksh.core.commands import clip_sentences
from asksh.core.guard import check_command
from asksh.core.messages import render_notice
from asksh.core.session import Session, Turn
from asksh.core.types import (
    CommandRecord,
    Disposition,
    ExecutionResult,
    GuardDecision,
    OutputSegment,
    Proposal,
    TurnContext,
    TurnResult,
    TurnState,
    Verdict,
)
from asksh.errors import LoopBudgetExceeded

DEFAULT_RETRY_BUDGET = 3
DEFAULT_MAX_STEPS = 10
MAX_EXPLANATION_SENTENCES = 2
USER_REJECTED_OUTPUT = "Command rejected by the user."

Approver = Callable[[str, str], bool]


class GenerationEngine(Protocol):
    def propose(self, context: TurnContext) -> Proposal: ...

    def judge(self, context: TurnContext) -> Verdict: ...


class ExecutionGateway(Protocol):
    def execute(self, command: str) -> ExecutionResult: ...


@dataclass(frozen=True)
class _Candidate:
    command: str
    signature: str


@dataclass
class _TurnProgress:
    turn: Turn
    context: TurnContext
    steps: int = 0
    consecutive_rejections: int = 0
    total_rejections: int = 0
    justification: str | None = None
    explanation: str = ""
    candidates: list[_Candidate] = field(default_factory=list)
    queue: deque[GuardDecision] = field(default_factory=deque)
    current: tuple[GuardDecision, ExecutionResult, bool] | None = None
    segments: list[OutputSegment] = field(default_factory=list)
    records: list[CommandRecord] = field(default_factory=list)
    disposition: Disposition | None = None
    error: str | None = None

    def emit(self, kind: str, text: str) -> None:
        if text:
            self.segments.append(OutputSegment(kind=kind, text=text, language=self.turn.language))

    def finish(self, disposition: Disposition, *, summary: str = "", kind: str = "summary") -> TurnState:
        self.disposition = disposition
        self.emit(kind, summary)
        return TurnState.TERMINATE


class TurnController:
    """Drive one user turn from language detection to termination."""

    def __init__(
        self,
        session: Session,
        engine: GenerationEngine,
        gateway: ExecutionGateway,
        *,
        retry_budget: int = DEFAULT_RETRY_BUDGET,
        max_steps: int = DEFAULT_MAX_STEPS,
        approver: Approver | None = None,
    ) -> None:
        if retry_budget < 1:
            raise ValueError("retry_budget must be positive")
        self._session = session
        self._engine = engine
        self._gateway = gateway
        self._retry_budget = retry_budget
        self._max_steps = max_steps
        self._approver = approver
        self._handlers: dict[TurnState, Callable[[_TurnProgress], TurnState]] = {
            TurnState.PROPOSE: self._propose,
            TurnState.GUARD_CHECK: self._guard_check,
            TurnState.EXECUTE: self._execute,
            TurnState.OBSERVE: self._observe,
            TurnState.DECIDE: self._decide,
        }

    @property
    def session(self) -> Session:
        return self._session

    def run(self, request: str) -> TurnResult:
        logger.debug("turn.state state={}", TurnState.DETECT_LANGUAGE.value)
        turn = self._session.begin_turn(request)
        progress = _TurnProgress(
            turn=turn,
            context=TurnContext(
                request=request,
                language=turn.language,
                turn=turn.index,
                transcript=self._session.transcript(),
            ),
        )

        try:
            self._drive(progress)
        except Exception as exc:
            logger.exception("turn.error turn={}", turn.index)
            self._turn_failed(progress, exc)
        finally:
            # An interrupt leaves no disposition; the turn still has to close.
            result = self._close(progress)
        return result

    def _drive(self, progress: _TurnProgress) -> None:
        turn = progress.turn
        state = TurnState.PROPOSE
        while state is not TurnState.TERMINATE:
            # A command that already ran is always recorded before stopping.
            if self._session.aborted and state is not TurnState.OBSERVE:
                progress.finish(Disposition.ABORTED, summary=render_notice("aborted", turn.language), kind="notice")
                return
            logger.debug("turn.state turn={} state={} step={}", turn.index, state.value, progress.steps)
            state = self._handlers[state](progress)

    def _close(self, progress: _TurnProgress) -> TurnResult:
        turn = progress.turn
        disposition = progress.disposition or Disposition.ABORTED
        turn.proposed_commands = bool(progress.records)
        result = TurnResult(
            turn=turn.index,
            request=progress.context.request,
            language=turn.language,
            disposition=disposition,
            segments=list(progress.segments),
            records=list(progress.records),
            rejections=progress.total_rejections,
            steps=progress.steps,
            error=progress.error,
        )
        self._session.close_turn(turn, disposition, summary=result.summary)
        return result

    def _propose(self, progress: _TurnProgress) -> TurnState:
        if progress.steps >= self._max_steps:
            logger.info("turn.max_steps turn={} max_steps={}", progress.turn.index, self._max_steps)
            return progress.finish(
                Disposition.STEP_LIMIT,
                summary=render_notice("step_limit", progress.turn.language, max_steps=self._max_steps),
                kind="notice",
            )
        progress.steps += 1
        context = self._refresh_context(progress)
        try:
            proposal = self._engine.propose(context)
        except Exception as exc:
            logger.exception("engine.propose.error")
            return self._turn_failed(progress, exc)

        progress.explanation = clip_sentences(proposal.explanation, MAX_EXPLANATION_SENTENCES)
        progress.justification = proposal.justification
        progress.candidates = self._candidates(proposal)
        if not progress.candidates:
            return progress.finish(Disposition.COMPLETED, summary=progress.explanation)
        return TurnState.GUARD_CHECK

    def _candidates(self, proposal: Proposal) -> list[_Candidate]:
        seen: set[str] = set()
        candidates: list[_Candidate] = []
        for command in proposal.commands:
            command = command.strip()
            if not command:
                continue
            signature = self._session.signature(command)
            if signature in seen:
                continue
            seen.add(signature)
            candidates.append(_Candidate(command=command, signature=signature))
        return candidates

    def _guard_check(self, progress: _TurnProgress) -> TurnState:
        after_command_proposal = progress.steps > 1 or self._session.last_turn_proposed_commands()
        decisions = [
            check_command(
                candidate.command,
                candidate.signature,
                self._session.ledger,
                justification=progress.justification,
                after_command_proposal=after_command_proposal,
            )
            for candidate in progress.candidates
        ]
        progress.candidates = []
        rejected = [decision for decision in decisions if not decision.allowed]
        if rejected:
            progress.consecutive_rejections += 1
            progress.total_rejections += 1
            progress.context.rejections.extend(rejected)
            if progress.consecutive_rejections >= self._retry_budget:
                exc = LoopBudgetExceeded(self._retry_budget)
                logger.warning("turn.blocked turn={} error={}", progress.turn.index, exc)
                progress.error = str(exc)
                return progress.finish(
                    Disposition.BLOCKED_DUPLICATE,
                    summary=render_notice("blocked", progress.turn.language),
                    kind="notice",
                )
            return TurnState.PROPOSE

        progress.consecutive_rejections = 0
        progress.context.rejections.clear()
        progress.queue = deque(decisions)
        progress.emit("explanation", progress.explanation)
        progress.emit("commands", "\n".join(decision.command for decision in decisions))
        return TurnState.EXECUTE

    def _execute(self, progress: _TurnProgress) -> TurnState:
        decision = progress.queue.popleft()
        approved = self._approve(decision.command)
        if not approved:
            result = ExecutionResult(stderr=USER_REJECTED_OUTPUT, exit_code=None, error="rejected by user")
        else:
            result = self._dispatch(decision.command)
        progress.current = (decision, result, approved)
        return TurnState.OBSERVE

    def _approve(self, command: str) -> bool:
        if self._approver is None:
            return True
        check = requires_approval(command)
        if not check.required:
            return True
        approved = self._approver(command, check.reason or "")
        logger.info("command.approval command={} approved={}", command, approved)
        return approved

    def _dispatch(self, command: str) -> ExecutionResult:
        logger.info("command.execute command={}", command)
        try:
            return self._gateway.execute(command)
        except Exception as exc:
            logger.warning("command.failure command={} error={}", command, exc)
            return ExecutionResult(exit_code=None, error=f"{exc!s}" or type(exc).__name__)

    def _observe(self, progress: _TurnProgress) -> TurnState:
        if progress.current is None:
            return TurnState.DECIDE
        decision, result, approved = progress.current
        progress.current = None
        ledger = self._session.ledger
        index = ledger.append(
            decision.command,
            result,
            signature=decision.signature,
            turn=progress.turn.index,
            justification=decision.justification,
            approved=approved,
        )
        record = cast(CommandRecord, ledger.last())
        progress.records.append(record)
        progress.turn.record_indices.append(index)
        progress.context.turn_records.append(record)

        if result.pending:
            progress.queue.clear()
            return progress.finish(
                Disposition.AWAITING_OUTPUT,
                summary=render_notice("awaiting_output", progress.turn.language, command=decision.command),
                kind="notice",
            )
        if not result.ok and progress.queue:
            logger.info("command.skip_remaining count={} after={}", len(progress.queue), decision.command)
            progress.queue.clear()
        if progress.queue:
            return TurnState.EXECUTE
        return TurnState.DECIDE

    def _decide(self, progress: _TurnProgress) -> TurnState:
        context = self._refresh_context(progress)
        try:
            verdict = self._engine.judge(context)
        except Exception as exc:
            logger.exception("engine.judge.error")
            return self._turn_failed(progress, exc)

        if not verdict.conclusive:
            return TurnState.PROPOSE
        summary = verdict.summary.strip() or self._fallback_summary(progress)
        return progress.finish(Disposition.COMPLETED, summary=summary)

    def _fallback_summary(self, progress: _TurnProgress) -> str:
        last = progress.context.last_record
        if last is None:
            return ""
        if last.result.ok:
            return last.result.stdout.strip()
        detail = last.result.error or last.result.stderr.strip() or f"exit code {last.result.exit_code}"
        return render_notice("failed", progress.turn.language, command=last.command, detail=detail)

    def _turn_failed(self, progress: _TurnProgress, exc: Exception) -> TurnState:
        progress.error = f"{exc!s}" or type(exc).__name__
        return progress.finish(
            Disposition.FAILED,
            summary=render_notice("engine_error", progress.turn.language, detail=progress.error),
            kind="notice",
        )

    def _refresh_context(self, progress: _TurnProgress) -> TurnContext:
        progress.context.history = list(self._session.ledger)
        progress.context.step = progress.steps
        return progress.context
