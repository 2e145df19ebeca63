"""
Domain: Automation stop conditions.

A stop is irreversible. Once a lead reaches one of the stop statuses (meeting
scheduled, closed, lost) its automation must be halted for good; a lead that
is already stopped keeps reporting a stop so callers can treat the signal as
idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from .lead import LeadSnapshot, LeadStatus


STOP_STATUSES: FrozenSet[LeadStatus] = frozenset({
    LeadStatus.VIEWING,  # meeting scheduled
    LeadStatus.CLOSED,
    LeadStatus.LOST,
})

REASON_ALREADY_STOPPED = "Already stopped"


@dataclass(frozen=True, slots=True)
class StopDecision:
    should_stop: bool
    reason: Optional[str] = None


def evaluate_stop(lead: LeadSnapshot) -> StopDecision:
    """Decide whether in-flight automation for a lead must be halted."""

    if lead.automation_stopped:
        return StopDecision(should_stop=True, reason=REASON_ALREADY_STOPPED)

    if lead.status in STOP_STATUSES:
        return StopDecision(
            should_stop=True,
            reason=f'Lead status changed to "{lead.status.value}"',
        )

    return StopDecision(should_stop=False)


__all__ = [
    "StopDecision",
    "evaluate_stop",
    "STOP_STATUSES",
]
