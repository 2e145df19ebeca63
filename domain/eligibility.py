"""
Domain: Automation eligibility.

Contract excerpts implemented here:
- Checks run in a fixed order and the first failing check determines the
  surfaced reason:
  1. automation previously stopped
  2. email bounced
  3. restricted source classification
  4. not Qualified ("contacted") and no lead-initiated contact
  5. contact details not verified
- A stopped lead is never eligible again.
- A bounced lead is never eligible, whatever the other fields say.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from .lead import LeadSnapshot, LeadStatus, SourceClassification


# Sources that are never eligible for automation.
RESTRICTED_SOURCES: FrozenSet[SourceClassification] = frozenset({
    SourceClassification.COLD_IMPORTED,
})

REASON_PREVIOUSLY_STOPPED = "Automation was previously stopped"
REASON_EMAIL_BOUNCED = "Email bounced — permanently disabled"
REASON_NOT_QUALIFIED = 'Lead must be in "Qualified" status or have initiated contact'
REASON_NOT_VERIFIED = "Contact details not verified"


@dataclass(frozen=True, slots=True)
class EligibilityDecision:
    eligible: bool
    reason: Optional[str] = None


def _restricted_source_reason(classification: SourceClassification) -> str:
    return f'Source "{classification.value}" is restricted from automation'


def evaluate_eligibility(lead: LeadSnapshot) -> EligibilityDecision:
    """
    Decide whether automation may be triggered for a lead.

    A lead whose classification has not been computed yet (None) is not
    treated as restricted.
    """

    if lead.automation_stopped:
        return EligibilityDecision(eligible=False, reason=REASON_PREVIOUSLY_STOPPED)

    if lead.email_bounce:
        return EligibilityDecision(eligible=False, reason=REASON_EMAIL_BOUNCED)

    if lead.source_classification in RESTRICTED_SOURCES:
        return EligibilityDecision(
            eligible=False,
            reason=_restricted_source_reason(lead.source_classification),
        )

    if lead.status != LeadStatus.CONTACTED and not lead.whatsapp_initiated:
        return EligibilityDecision(eligible=False, reason=REASON_NOT_QUALIFIED)

    if not lead.contact_verified:
        return EligibilityDecision(eligible=False, reason=REASON_NOT_VERIFIED)

    return EligibilityDecision(eligible=True)


__all__ = [
    "EligibilityDecision",
    "evaluate_eligibility",
    "RESTRICTED_SOURCES",
]
