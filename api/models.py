"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Metadata Models
# ============================================================================

class LeadMetadataResponse(BaseModel):
    """Derived lead metadata after detection and classification."""
    lead_id: UUID
    detected_country: Optional[str] = None
    detected_timezone: Optional[str] = None
    source_classification: str

    class Config:
        json_schema_extra = {
            "example": {
                "lead_id": "123e4567-e89b-12d3-a456-426614174000",
                "detected_country": "AE",
                "detected_timezone": "Asia/Dubai",
                "source_classification": "whatsapp_inbound"
            }
        }


# ============================================================================
# Governance Models
# ============================================================================

class EligibilityResponse(BaseModel):
    eligible: bool
    reason: Optional[str] = None


class StopDecisionResponse(BaseModel):
    should_stop: bool
    reason: Optional[str] = None


class ChannelPermissionResponse(BaseModel):
    allowed: bool
    max_messages: int


class GovernanceReportResponse(BaseModel):
    """Automation decisions for a single lead."""
    lead_id: UUID
    eligibility: EligibilityResponse
    stop: StopDecisionResponse
    whatsapp: ChannelPermissionResponse
    email: ChannelPermissionResponse
    metadata_persisted: bool

    class Config:
        json_schema_extra = {
            "example": {
                "lead_id": "123e4567-e89b-12d3-a456-426614174000",
                "eligibility": {"eligible": False, "reason": "Contact details not verified"},
                "stop": {"should_stop": False, "reason": None},
                "whatsapp": {"allowed": True, "max_messages": 1},
                "email": {"allowed": True, "max_messages": 2},
                "metadata_persisted": True
            }
        }


# ============================================================================
# Stop Models
# ============================================================================

class StopRequest(BaseModel):
    """Request to stop all automation for a lead."""
    reason: str = Field(
        "Manual stop",
        min_length=1,
        max_length=500,
        description="Why automation is being stopped"
    )

    class Config:
        json_schema_extra = {
            "example": {"reason": "Lead asked not to be contacted"}
        }


class StopResponse(BaseModel):
    """Response after a confirmed stop."""
    lead_id: UUID
    stopped: bool
    reason: str
    message: Optional[str] = None
