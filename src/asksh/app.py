"""Application runtime wiring."""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from pathlib import Path

from asksh.config import Settings
from asksh.core import (
    ExecutionGateway,
    GenerationEngine,
    LanguageDetector,
    Session,
    TurnController,
    TurnResult,
)
from asksh.core.commands import command_signature, workspace_path_resolver
from asksh.core.controller import Approver
from asksh.engine import build_engine
from asksh.gateway import SubprocessGateway
from asksh.ledger import Ledger, LedgerFile


@dataclass
class AskRuntime:
    """One session plus the controller that drives its turns."""

    workspace: Path
    settings: Settings
    session: Session
    controller: TurnController

    def __enter__(self) -> AskRuntime:
        self.session.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.session.__exit__(exc_type, exc_val, exc_tb)

    def handle_input(self, text: str) -> TurnResult:
        return self.controller.run(text)

    def abort(self) -> None:
        self.session.abort()


def build_session(settings: Settings, workspace: Path) -> Session:
    mirror = LedgerFile(settings.ledger_path) if settings.ledger_path is not None else None
    ledger = Ledger(
        retention=settings.ledger_retention,
        max_output_chars=settings.max_output_chars,
        mirror=mirror,
    )
    signer = partial(
        command_signature,
        inert_flags=settings.inert_flags,
        fold_timestamps=settings.fold_timestamps,
        resolve_path=workspace_path_resolver(workspace),
    )
    return Session(ledger=ledger, detector=LanguageDetector(settings.default_language), signer=signer)


def build_runtime(
    settings: Settings,
    *,
    approver: Approver | None = None,
    engine: GenerationEngine | None = None,
    gateway: ExecutionGateway | None = None,
) -> AskRuntime:
    """Build a runtime from settings, with optional engine and gateway overrides."""

    workspace = settings.resolve_workspace()
    session = build_session(settings, workspace)
    if engine is None:
        engine = build_engine(settings)
    if gateway is None:
        gateway = SubprocessGateway(
            workspace,
            timeout_seconds=settings.command_timeout_seconds,
            max_output_chars=settings.max_output_chars,
        )
    controller = TurnController(
        session,
        engine,
        gateway,
        retry_budget=settings.retry_budget,
        max_steps=settings.max_steps,
        approver=approver if settings.require_approval else None,
    )
    return AskRuntime(workspace=workspace, settings=settings, session=session, controller=controller)
