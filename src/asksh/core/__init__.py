"""Core module for ask-sh."""

from .controller import ExecutionGateway, GenerationEngine, TurnController
from .language import LanguageDetector
from .session import Session, Turn
from .types import (
    CommandRecord,
    Disposition,
    ExecutionResult,
    GuardDecision,
    GuardVerdict,
    OutputSegment,
    Proposal,
    TurnContext,
    TurnResult,
    TurnState,
    Verdict,
)

__all__ = [
    "CommandRecord",
    "Disposition",
    "ExecutionGateway",
    "ExecutionResult",
    "GenerationEngine",
    "GuardDecision",
    "GuardVerdict",
    "LanguageDetector",
    "OutputSegment",
    "Proposal",
    "Session",
    "Turn",
    "TurnContext",
    "TurnController",
    "TurnResult",
    "TurnState",
    "Verdict",
]
