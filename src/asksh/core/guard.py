"""Duplicate and loop guard."""

from __future__ import annotations

from loguru import logger

from asksh.core.types import GuardDecision, GuardVerdict
from asksh.ledger import Ledger


def check_command(
    command: str,
    signature: str,
    ledger: Ledger,
    *,
    justification: str | None = None,
    after_command_proposal: bool = True,
) -> GuardDecision:
    """Decide whether ``command`` may run given the session ledger.

    Repeating the last ledger record right after a command proposal is
    rejected unless justified. Repeating any older record needs a
    justification as well. A justified repeat is let through and the
    justification travels with the new record.
    """

    justification = (justification or "").strip() or None
    matches = ledger.find_similar(signature)
    if not matches or not after_command_proposal:
        return GuardDecision(GuardVerdict.ALLOW, command, signature)

    last = ledger.last()
    if last is not None and last.signature == signature:
        if justification is None:
            reason = (
                f"`{command}` repeats the previous command #{last.index} without new information; "
                "use a different approach or state a justification"
            )
            logger.info("guard.reject kind=immediate signature={} index={}", signature, last.index)
            return GuardDecision(GuardVerdict.REJECT, command, signature, reason=reason, matched_index=last.index)
        return _justified(command, signature, justification, last.index)

    earlier = matches[-1]
    if justification is None:
        reason = f"`{command}` already ran as command #{earlier.index}; state why running it again is needed"
        logger.info("guard.reject kind=earlier signature={} index={}", signature, earlier.index)
        return GuardDecision(GuardVerdict.REJECT, command, signature, reason=reason, matched_index=earlier.index)
    return _justified(command, signature, justification, earlier.index)


def _justified(command: str, signature: str, justification: str, matched_index: int) -> GuardDecision:
    logger.info("guard.allow_with_justification signature={} index={}", signature, matched_index)
    return GuardDecision(
        GuardVerdict.ALLOW_WITH_JUSTIFICATION,
        command,
        signature,
        justification=justification,
        matched_index=matched_index,
    )
