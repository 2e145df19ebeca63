"""
Domain: Per-channel permissions and quotas.

Quotas are ceilings, not counters. The dispatch service tracks how many
messages it has sent to a lead and must not exceed the ceiling supplied here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from .lead import LeadSnapshot, SourceClassification


# Sources where WhatsApp is disabled even with opt-in.
WHATSAPP_RESTRICTED_SOURCES: FrozenSet[SourceClassification] = frozenset({
    SourceClassification.COLD_IMPORTED,
    SourceClassification.DUBAI_OWNER_DATABASE,
})

# Sources limited to a single automated email.
EMAIL_LIMITED_SOURCES: FrozenSet[SourceClassification] = frozenset({
    SourceClassification.DUBAI_OWNER_DATABASE,
})

DEFAULT_MAX_EMAILS = 2
LIMITED_MAX_EMAILS = 1
MAX_WHATSAPP_MESSAGES = 1


@dataclass(frozen=True, slots=True)
class ChannelPermission:
    allowed: bool
    max_messages: int


def is_whatsapp_allowed(lead: LeadSnapshot) -> bool:
    """
    WhatsApp requires the lead to have opted in or messaged first, and is
    never used for restricted sources.
    """

    if not lead.whatsapp_initiated and not lead.whatsapp_opt_in:
        return False
    return lead.source_classification not in WHATSAPP_RESTRICTED_SOURCES


def get_max_emails(classification: Optional[SourceClassification]) -> int:
    """Maximum number of automated emails for a classification."""

    if classification in EMAIL_LIMITED_SOURCES:
        return LIMITED_MAX_EMAILS
    return DEFAULT_MAX_EMAILS


def whatsapp_permission(lead: LeadSnapshot) -> ChannelPermission:
    if not is_whatsapp_allowed(lead):
        return ChannelPermission(allowed=False, max_messages=0)
    return ChannelPermission(allowed=True, max_messages=MAX_WHATSAPP_MESSAGES)


def email_permission(lead: LeadSnapshot) -> ChannelPermission:
    if lead.email_bounce:
        return ChannelPermission(allowed=False, max_messages=0)
    return ChannelPermission(
        allowed=True,
        max_messages=get_max_emails(lead.source_classification),
    )


__all__ = [
    "ChannelPermission",
    "is_whatsapp_allowed",
    "get_max_emails",
    "whatsapp_permission",
    "email_permission",
    "WHATSAPP_RESTRICTED_SOURCES",
    "EMAIL_LIMITED_SOURCES",
    "MAX_WHATSAPP_MESSAGES",
]
