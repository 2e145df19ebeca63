"""
Domain: Lead snapshot and its closed vocabularies.

Contract excerpts implemented here:
- A LeadSnapshot is a read-only view of a lead, fetched fresh before every
  evaluation. Evaluators never mutate it.
- Pipeline status is one of a closed set of seven values.
- Source classification is one of exactly six canonical categories.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import UUID


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"  # "Qualified" in the CRM pipeline
    VIEWING = "viewing"
    VIEWED = "viewed"
    NEGOTIATION = "negotiation"
    CLOSED = "closed"
    LOST = "lost"


class SourceClassification(str, Enum):
    LINKEDIN_INBOUND = "linkedin_inbound"
    LINKEDIN_OUTREACH_RESPONSE = "linkedin_outreach_response"
    WHATSAPP_INBOUND = "whatsapp_inbound"
    DUBAI_OWNER_DATABASE = "dubai_owner_database"
    REFERRAL = "referral"
    COLD_IMPORTED = "cold_imported"


@dataclass(frozen=True, slots=True)
class LeadSnapshot:
    """
    Pure domain view of a lead as read by the governance engine.

    Notes:
    - source_classification stays None until it has been computed.
    - phone and email are only consulted for country detection.
    """

    lead_id: UUID
    status: LeadStatus
    source: Optional[str] = None
    source_classification: Optional[SourceClassification] = None

    # Governance flags
    contact_verified: bool = False
    automation_stopped: bool = False
    email_bounce: bool = False
    whatsapp_initiated: bool = False
    whatsapp_opt_in: bool = False

    # Derived geo metadata
    detected_country: Optional[str] = None
    detected_timezone: Optional[str] = None

    # Contact identifiers
    phone: Optional[str] = None
    email: Optional[str] = None
