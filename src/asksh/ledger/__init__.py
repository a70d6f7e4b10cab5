"""Command history ledger for ask-sh."""

from .service import Ledger, LedgerInfo
from .store import LedgerFile

__all__ = ["Ledger", "LedgerFile", "LedgerInfo"]
