"""
Lead source classification.

Maps a raw acquisition source (the CRM's lead_source value) plus the
WhatsApp-initiated context to one canonical SourceClassification.

The mapping is total: unrecognized sources fall back to COLD_IMPORTED, the
most restrictive classification.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from .lead import SourceClassification


# Raw sources with a fixed classification. social_media is context-dependent
# and handled in classify_source().
SOURCE_TO_CLASSIFICATION: Mapping[str, SourceClassification] = MappingProxyType({
    "referral": SourceClassification.REFERRAL,
    "walk_in": SourceClassification.REFERRAL,
    "cold_call": SourceClassification.COLD_IMPORTED,
    "website": SourceClassification.LINKEDIN_INBOUND,
    "property_portal": SourceClassification.LINKEDIN_INBOUND,
})

FALLBACK_CLASSIFICATION = SourceClassification.COLD_IMPORTED


def classify_source(
    raw_source: Optional[str],
    whatsapp_initiated: bool = False,
) -> SourceClassification:
    """
    Classify a lead by its raw acquisition source.

    Classification Rules:
    - social_media: WHATSAPP_INBOUND if the lead initiated contact on
      WhatsApp, LINKEDIN_INBOUND otherwise
    - referral, walk_in: REFERRAL
    - cold_call: COLD_IMPORTED
    - website, property_portal: LINKEDIN_INBOUND
    - anything else (including missing): COLD_IMPORTED

    Args:
        raw_source: lead_source value as stored on the lead
        whatsapp_initiated: Whether the lead messaged first on WhatsApp

    Returns:
        Exactly one SourceClassification.

    Examples:
        >>> classify_source("social_media", whatsapp_initiated=True)
        <SourceClassification.WHATSAPP_INBOUND: 'whatsapp_inbound'>

        >>> classify_source("billboard")
        <SourceClassification.COLD_IMPORTED: 'cold_imported'>
    """
    source = (raw_source or "").strip().lower()

    if source == "social_media":
        if whatsapp_initiated:
            return SourceClassification.WHATSAPP_INBOUND
        return SourceClassification.LINKEDIN_INBOUND

    return SOURCE_TO_CLASSIFICATION.get(source, FALLBACK_CLASSIFICATION)


def get_classification_summary(
    sources: Iterable[Tuple[Optional[str], bool]],
) -> dict[str, int]:
    """
    Count classifications for a batch of (raw_source, whatsapp_initiated) pairs.

    Every classification appears in the result (zero when unused), plus a
    "Total" entry.

    Example:
        >>> summary = get_classification_summary([("referral", False), ("x", False)])
        >>> summary["referral"], summary["cold_imported"], summary["Total"]
        (1, 1, 2)
    """
    counts = {classification.value: 0 for classification in SourceClassification}

    total = 0
    for raw_source, whatsapp_initiated in sources:
        counts[classify_source(raw_source, whatsapp_initiated).value] += 1
        total += 1

    counts["Total"] = total
    return counts


__all__ = [
    "classify_source",
    "get_classification_summary",
    "SOURCE_TO_CLASSIFICATION",
    "FALLBACK_CLASSIFICATION",
]
