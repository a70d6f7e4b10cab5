from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from asksh.core import Session, TurnController
from asksh.core.controller import USER_REJECTED_OUTPUT
from asksh.core.messages import render_notice
from asksh.core.types import Disposition, ExecutionResult, Proposal, TurnContext, Verdict
from asksh.errors import AskShError, GatewayTimeout


@dataclass
class ScriptedEngine:
    proposals: list[Proposal]
    verdicts: list[Verdict] = field(default_factory=list)
    seen_rejections: list[list[str]] = field(default_factory=list)
    propose_calls: int = 0

    def propose(self, context: TurnContext) -> Proposal:
        self.propose_calls += 1
        self.seen_rejections.append([decision.reason for decision in context.rejections])
        return self.proposals.pop(0)

    def judge(self, context: TurnContext) -> Verdict:
        if self.verdicts:
            return self.verdicts.pop(0)
        return Verdict(conclusive=True)


@dataclass
class FakeGateway:
    results: dict[str, ExecutionResult | Exception] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def execute(self, command: str) -> ExecutionResult:
        self.calls.append(command)
        result = self.results.get(command, ExecutionResult(stdout=f"{command} ok\n"))
        if isinstance(result, Exception):
            raise result
        return result


def _controller(engine: ScriptedEngine, gateway: FakeGateway | None = None, **kwargs) -> TurnController:
    return TurnController(Session(), engine, gateway or FakeGateway(), **kwargs)


def test_french_request_gets_french_turn() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("Voici la commande pour afficher la date.", ("date",))],
        verdicts=[Verdict(conclusive=True, summary="Nous sommes le mardi 14 mai 2024.")],
    )
    gateway = FakeGateway(results={"date": ExecutionResult(stdout="Tue May 14 10:00:00 UTC 2024\n")})
    controller = _controller(engine, gateway)

    result = controller.run("Quelle est la date d'aujourd'hui ?")

    assert result.language == "fr"
    assert result.disposition is Disposition.COMPLETED
    assert result.summary == "Nous sommes le mardi 14 mai 2024."
    assert gateway.calls == ["date"]
    assert {segment.language for segment in result.segments} == {"fr"}
    assert [segment.kind for segment in result.segments] == ["explanation", "commands", "summary"]
    assert len(controller.session.ledger) == 1


def test_equivalent_repeat_is_rejected_and_fed_back() -> None:
    engine = ScriptedEngine(
        proposals=[
            Proposal("Show the log.", ("git log",)),
            Proposal("Show it again.", ("git --no-pager log",)),
            Proposal("Show the last five.", ("git log -n 5",)),
        ],
        verdicts=[Verdict(conclusive=False), Verdict(conclusive=True, summary="Five commits shown.")],
    )
    gateway = FakeGateway()
    controller = _controller(engine, gateway)

    result = controller.run("show me the git log")

    assert gateway.calls == ["git log", "git log -n 5"]
    assert result.rejections == 1
    assert result.disposition is Disposition.COMPLETED
    assert engine.seen_rejections[2] and "#1" in engine.seen_rejections[2][0]


def test_justified_repeat_runs_and_records_justification() -> None:
    engine = ScriptedEngine(
        proposals=[
            Proposal("List files.", ("ls",)),
            Proposal("List again.", ("ls",), justification="a file was created since"),
        ],
        verdicts=[Verdict(conclusive=False), Verdict(conclusive=True, summary="Two files.")],
    )
    gateway = FakeGateway()
    controller = _controller(engine, gateway)

    result = controller.run("list the files")

    assert gateway.calls == ["ls", "ls"]
    records = controller.session.ledger.records
    assert records[0].justification is None
    assert records[1].justification == "a file was created since"
    assert result.rejections == 0


def test_retry_budget_blocks_repeated_proposals() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("List files.", ("ls",)) for _ in range(4)],
        verdicts=[Verdict(conclusive=False)],
    )
    gateway = FakeGateway()
    controller = _controller(engine, gateway, retry_budget=3)

    result = controller.run("list the files in this directory")

    assert result.disposition is Disposition.BLOCKED_DUPLICATE
    assert gateway.calls == ["ls"]
    assert engine.propose_calls == 4
    assert result.rejections == 3
    assert result.summary == render_notice("blocked", "en")
    assert result.error is not None
    assert "retry budget" in result.error
    assert len(controller.session.ledger) == 1


def test_allowed_proposal_resets_rejection_count() -> None:
    engine = ScriptedEngine(
        proposals=[
            Proposal("", ("ls",)),
            Proposal("", ("ls",)),
            Proposal("", ("pwd",)),
            Proposal("", ("pwd",)),
            Proposal("", ("whoami",)),
        ],
        verdicts=[Verdict(False), Verdict(False), Verdict(True, "done")],
    )
    controller = _controller(engine, retry_budget=2)

    result = controller.run("where am i and who am i")

    assert result.disposition is Disposition.COMPLETED
    assert result.rejections == 2
    assert result.summary == "done"


def test_failed_command_drops_remaining_queue_and_reports_failure() -> None:
    engine = ScriptedEngine(proposals=[Proposal("Count lines.", ("cat missing.txt", "wc -l missing.txt"))])
    gateway = FakeGateway(
        results={"cat missing.txt": ExecutionResult(stderr="No such file or directory", exit_code=1)}
    )
    controller = _controller(engine, gateway)

    result = controller.run("how many lines are in missing.txt")

    assert gateway.calls == ["cat missing.txt"]
    assert result.disposition is Disposition.COMPLETED
    assert result.summary == render_notice(
        "failed", "en", command="cat missing.txt", detail="No such file or directory"
    )


def test_gateway_exception_becomes_failed_record() -> None:
    engine = ScriptedEngine(proposals=[Proposal("", ("sleep 100",))])
    gateway = FakeGateway(results={"sleep 100": GatewayTimeout("sleep 100", 1.0)})
    controller = _controller(engine, gateway)

    result = controller.run("wait for a long time")

    record = result.records[0]
    assert record.result.exit_code is None
    assert record.result.error is not None
    assert "timed out" in record.result.error
    assert result.disposition is Disposition.COMPLETED
    assert not controller.session.closed


def test_successful_inconclusive_verdict_falls_back_to_stdout() -> None:
    engine = ScriptedEngine(proposals=[Proposal("", ("whoami",))], verdicts=[Verdict(conclusive=True)])
    gateway = FakeGateway(results={"whoami": ExecutionResult(stdout="alice\n")})

    result = _controller(engine, gateway).run("who am i")

    assert result.summary == "alice"


def test_pending_output_ends_turn_awaiting() -> None:
    engine = ScriptedEngine(proposals=[Proposal("Follow the log.", ("tail -f app.log", "echo next"))])
    gateway = FakeGateway(results={"tail -f app.log": ExecutionResult(exit_code=None, pending=True)})
    controller = _controller(engine, gateway)

    result = controller.run("follow the app log")

    assert result.disposition is Disposition.AWAITING_OUTPUT
    assert gateway.calls == ["tail -f app.log"]
    assert "tail -f app.log" in result.summary
    assert controller.session.ledger.last().result.pending


def test_abort_stops_at_next_boundary() -> None:
    session = Session()

    class AbortingEngine(ScriptedEngine):
        def propose(self, context: TurnContext) -> Proposal:
            session.abort()
            return super().propose(context)

    engine = AbortingEngine(proposals=[Proposal("", ("ls",))])
    gateway = FakeGateway()
    controller = TurnController(session, engine, gateway)

    result = controller.run("list the files")

    assert result.disposition is Disposition.ABORTED
    assert gateway.calls == []
    assert result.summary == render_notice("aborted", "en")
    with pytest.raises(AskShError):
        controller.run("list the files again")


def test_approval_denial_records_rejection_without_running() -> None:
    prompts: list[tuple[str, str]] = []

    def deny(command: str, reason: str) -> bool:
        prompts.append((command, reason))
        return False

    engine = ScriptedEngine(proposals=[Proposal("Read then delete.", ("cat notes.txt", "rm notes.txt"))])
    gateway = FakeGateway()
    controller = _controller(engine, gateway, approver=deny)

    result = controller.run("delete the notes file")

    assert gateway.calls == ["cat notes.txt"]
    assert prompts == [("rm notes.txt", "modifies files or system state")]
    record = result.records[-1]
    assert record.approved is False
    assert record.result.stderr == USER_REJECTED_OUTPUT


def test_step_limit_ends_turn() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("", ("ls",)), Proposal("", ("pwd",))],
        verdicts=[Verdict(False), Verdict(False)],
    )
    result = _controller(engine, max_steps=2).run("list the files")

    assert result.disposition is Disposition.STEP_LIMIT
    assert result.steps == 2
    assert result.summary == render_notice("step_limit", "en", max_steps=2)


def test_answer_without_commands_completes_immediately() -> None:
    engine = ScriptedEngine(proposals=[Proposal("A pipe sends one command's output to another.")])
    gateway = FakeGateway()

    result = _controller(engine, gateway).run("what is a pipe?")

    assert result.disposition is Disposition.COMPLETED
    assert result.summary == "A pipe sends one command's output to another."
    assert gateway.calls == []


def test_explanation_is_clipped_to_two_sentences() -> None:
    engine = ScriptedEngine(proposals=[Proposal("One. Two. Three.", ("ls",))], verdicts=[Verdict(True, "ok")])
    result = _controller(engine).run("list the files")

    assert result.segments[0].text == "One. Two."


def test_duplicate_candidates_in_one_proposal_run_once() -> None:
    engine = ScriptedEngine(proposals=[Proposal("", ("git log", "git --no-pager log"))])
    gateway = FakeGateway()

    _controller(engine, gateway).run("show the git log")

    assert gateway.calls == ["git log"]


def test_engine_error_ends_turn_with_notice() -> None:
    class BrokenEngine(ScriptedEngine):
        def propose(self, context: TurnContext) -> Proposal:
            raise RuntimeError("boom")

    result = _controller(BrokenEngine(proposals=[])).run("list the files")

    assert result.disposition is Disposition.FAILED
    assert result.error == "boom"
    assert result.summary == render_notice("engine_error", "en", detail="boom")


def test_language_stays_stable_on_ambiguous_followup() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("Il est dix heures."), Proposal("", ("ls -la",))],
        verdicts=[Verdict(True, "Voici les fichiers.")],
    )
    controller = _controller(engine)

    first = controller.run("Quelle heure est-il ?")
    second = controller.run("ls -la")

    assert first.language == "fr"
    assert second.language == "fr"
    assert {segment.language for segment in second.segments} == {"fr"}


def test_repeat_across_turns_is_rejected() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("", ("ls",)), Proposal("", ("ls",)), Proposal("", ("ls -a",))],
        verdicts=[Verdict(True, "two files"), Verdict(True, "three entries")],
    )
    gateway = FakeGateway()
    controller = _controller(engine, gateway)

    controller.run("list the files")
    result = controller.run("list the files again")

    assert gateway.calls == ["ls", "ls -a"]
    assert result.rejections == 1


def test_ledger_is_append_only_across_turns() -> None:
    engine = ScriptedEngine(
        proposals=[Proposal("", ("ls",)), Proposal("", ("pwd",))],
        verdicts=[Verdict(True, "a"), Verdict(True, "b")],
    )
    controller = _controller(engine)

    controller.run("list the files")
    before = controller.session.ledger.records
    controller.run("show the current directory")
    after = controller.session.ledger.records

    assert after[: len(before)] == before
    assert [record.index for record in after] == [1, 2]
    assert [record.turn for record in after] == [1, 2]


def test_retry_budget_must_be_positive() -> None:
    with pytest.raises(ValueError):
        _controller(ScriptedEngine(proposals=[]), retry_budget=0)


def test_abort_during_execution_still_records_command() -> None:
    session = Session()

    class AbortingGateway(FakeGateway):
        def execute(self, command: str) -> ExecutionResult:
            result = super().execute(command)
            session.abort()
            return result

    engine = ScriptedEngine(proposals=[Proposal("", ("touch marker", "ls"))])
    gateway = AbortingGateway()
    controller = TurnController(session, engine, gateway)

    result = controller.run("create a marker file and list")

    assert result.disposition is Disposition.ABORTED
    assert gateway.calls == ["touch marker"]
    assert len(session.ledger) == 1
    assert session.ledger.last().command == "touch marker"
    assert [record.command for record in result.records] == ["touch marker"]


def test_rejections_are_not_repeated_after_an_accepted_proposal() -> None:
    engine = ScriptedEngine(
        proposals=[
            Proposal("", ("ls",)),
            Proposal("", ("ls",)),
            Proposal("", ("pwd",)),
            Proposal("", ("whoami",)),
        ],
        verdicts=[Verdict(False), Verdict(False), Verdict(True, "done")],
    )

    result = _controller(engine).run("where am i and who am i")

    assert result.disposition is Disposition.COMPLETED
    assert engine.seen_rejections[2]
    assert engine.seen_rejections[3] == []


def test_engine_error_fails_turn_and_keeps_session_usable() -> None:
    class FlakyEngine(ScriptedEngine):
        def judge(self, context: TurnContext) -> Verdict:
            raise ConnectionError("provider unreachable")

    engine = FlakyEngine(proposals=[Proposal("", ("ls",)), Proposal("Nothing to run.")])
    controller = _controller(engine)

    failed = controller.run("list the files")
    second = controller.run("what is a pipe?")

    assert failed.disposition is Disposition.FAILED
    assert failed.error == "provider unreachable"
    assert len(failed.records) == 1
    assert second.disposition is Disposition.COMPLETED


def test_unexpected_error_closes_turn() -> None:
    def broken_signer(command: str) -> str:
        raise RuntimeError("cannot sign")

    session = Session(signer=broken_signer)
    controller = TurnController(session, ScriptedEngine(proposals=[Proposal("", ("ls",))]), FakeGateway())

    result = controller.run("list the files")

    assert result.disposition is Disposition.FAILED
    assert result.error == "cannot sign"
    assert session.turns[-1].disposition is Disposition.FAILED
    assert not session.closed


def test_interrupt_closes_turn_as_aborted() -> None:
    class InterruptedEngine(ScriptedEngine):
        def propose(self, context: TurnContext) -> Proposal:
            raise KeyboardInterrupt

    session = Session()
    controller = TurnController(session, InterruptedEngine(proposals=[]), FakeGateway())

    with pytest.raises(KeyboardInterrupt):
        controller.run("list the files")

    assert session.turns[-1].disposition is Disposition.ABORTED
