"""Execution gateways for ask-sh."""

from .shell import NON_INTERACTIVE_ENV, SubprocessGateway

__all__ = ["NON_INTERACTIVE_ENV", "SubprocessGateway"]
