"""
Domain: Derived lead metadata (country, timezone, source classification).

Derived values only ever fill fields that are still null on the stored lead.
A stored value, including a classification assigned outside the raw-source
mapping (e.g. dubai_owner_database), is never replaced or blanked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .classification import classify_source
from .geo import detect_geo, get_timezone_for_country, normalize_country
from .lead import LeadSnapshot, SourceClassification


@dataclass(frozen=True, slots=True)
class LeadMetadata:
    """Effective metadata for a lead: stored values first, derived ones otherwise."""

    country: Optional[str]
    timezone: Optional[str]
    classification: SourceClassification

    def missing_fields(self, lead: LeadSnapshot) -> dict[str, Any]:
        """
        Partial update payload: the non-null values whose stored field is null.
        """

        candidates: dict[str, Any] = {
            "source_classification": self.classification.value,
            "detected_country": self.country,
            "detected_timezone": self.timezone,
        }
        return {
            field: value
            for field, value in candidates.items()
            if value is not None and getattr(lead, field) is None
        }


def _timezone_for(lead: LeadSnapshot, country: Optional[str]) -> Optional[str]:
    if lead.detected_timezone is not None:
        return lead.detected_timezone
    if country is None:
        return None
    normalized = normalize_country(country)
    return get_timezone_for_country(normalized) if normalized else None


def derive_metadata(lead: LeadSnapshot) -> LeadMetadata:
    """
    Resolve country, timezone and classification for a lead snapshot.

    Stored values win. A previously detected country is also used as the
    explicit country when the timezone still has to be looked up.
    """

    if lead.detected_country is not None:
        country: Optional[str] = lead.detected_country
    else:
        country = detect_geo(None, lead.phone, lead.email).country

    classification = lead.source_classification
    if classification is None:
        classification = classify_source(lead.source, lead.whatsapp_initiated)

    return LeadMetadata(
        country=country,
        timezone=_timezone_for(lead, country),
        classification=classification,
    )


__all__ = [
    "LeadMetadata",
    "derive_metadata",
]
