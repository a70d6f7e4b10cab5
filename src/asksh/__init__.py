"""ask-sh: ask your shell in plain language."""

from .core import Session, TurnController, TurnResult
from .ledger import Ledger

__version__ = "0.1.0"

__all__ = ["Ledger", "Session", "TurnController", "TurnResult"]
