"""Application-level exception types for ask-sh."""

from __future__ import annotations


class AskShError(Exception):
    """Base exception for ask-sh."""


class ConfigurationError(AskShError):
    """Base exception for configuration and startup validation errors."""


class ModelNotConfiguredError(ConfigurationError):
    """Raised when model configuration is missing."""


class InvalidModelFormatError(ConfigurationError):
    """Raised when model format is not provider:model."""


class DetectionAmbiguous(AskShError):
    """Raised when a message does not identify one language."""


class LoopBudgetExceeded(AskShError):
    """Raised when consecutive guard rejections reach the retry budget."""

    def __init__(self, budget: int) -> None:
        super().__init__(f"retry budget exhausted after {budget} rejections")
        self.budget = budget


class ExecutionFailure(AskShError):
    """Raised by a gateway that could not run a command."""


class GatewayTimeout(ExecutionFailure):
    """Raised when a command does not finish within the gateway timeout."""

    def __init__(self, command: str, timeout_seconds: float) -> None:
        super().__init__(f"command timed out after {timeout_seconds}s: {command}")
        self.command = command
        self.timeout_seconds = timeout_seconds


class LedgerAppendFailure(AskShError):
    """Raised internally when the ledger cannot store another record."""
