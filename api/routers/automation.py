"""
Automation Governance API Endpoints.

Trigger endpoints for new leads, status changes and manual actions.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response

from api.models import (
    ChannelPermissionResponse,
    EligibilityResponse,
    GovernanceReportResponse,
    LeadMetadataResponse,
    StopDecisionResponse,
    StopRequest,
    StopResponse,
)
from repositories.errors import DispatchUnavailable, LeadNotFound, RepositoryUnavailable
from services.governance_service import GovernanceOrchestrator

router = APIRouter()

_orchestrator: GovernanceOrchestrator | None = None


def get_orchestrator() -> GovernanceOrchestrator:
    """Shared orchestrator backed by Supabase (overridden in tests)."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = GovernanceOrchestrator()
    return _orchestrator


def _not_found(lead_id: UUID) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Lead not found: {lead_id}")


def _unavailable(e: Exception) -> HTTPException:
    return HTTPException(status_code=503, detail=str(e))


@router.post(
    "/leads/{lead_id}/detect",
    response_model=LeadMetadataResponse,
    summary="Detect Lead Metadata",
    description="Detect country/timezone and classify the lead source, then fill in the values still missing on the lead."
)
def detect_lead_metadata(
    lead_id: UUID,
    orchestrator: GovernanceOrchestrator = Depends(get_orchestrator),
):
    """
    Detect and persist derived metadata for a lead.

    Only fields still missing on the lead are filled; stored values are kept.
    """
    try:
        metadata = orchestrator.detect_and_classify(lead_id)
    except LeadNotFound:
        raise _not_found(lead_id)
    except RepositoryUnavailable as e:
        raise _unavailable(e)

    return LeadMetadataResponse(
        lead_id=lead_id,
        detected_country=metadata.country,
        detected_timezone=metadata.timezone,
        source_classification=metadata.classification.value,
    )


@router.get(
    "/leads/{lead_id}/automation",
    response_model=GovernanceReportResponse,
    summary="Get Automation Decisions",
    description="Eligibility, stop condition and channel permissions for a lead."
)
def get_automation_report(
    lead_id: UUID,
    orchestrator: GovernanceOrchestrator = Depends(get_orchestrator),
):
    """
    Evaluate automation governance for a lead.

    The dispatch service must consult this before every send attempt.
    """
    try:
        report = orchestrator.evaluate_lead(lead_id)
    except LeadNotFound:
        raise _not_found(lead_id)
    except RepositoryUnavailable as e:
        raise _unavailable(e)

    return GovernanceReportResponse(
        lead_id=report.lead_id,
        eligibility=EligibilityResponse(
            eligible=report.eligibility.eligible,
            reason=report.eligibility.reason,
        ),
        stop=StopDecisionResponse(
            should_stop=report.stop.should_stop,
            reason=report.stop.reason,
        ),
        whatsapp=ChannelPermissionResponse(
            allowed=report.whatsapp.allowed,
            max_messages=report.whatsapp.max_messages,
        ),
        email=ChannelPermissionResponse(
            allowed=report.email.allowed,
            max_messages=report.email.max_messages,
        ),
        metadata_persisted=report.metadata_persisted,
    )


@router.post(
    "/leads/{lead_id}/automation/stop",
    response_model=StopResponse,
    summary="Stop Lead Automation",
    description="Permanently stop automation for a lead. Irreversible."
)
def stop_lead_automation(
    lead_id: UUID,
    request: StopRequest,
    orchestrator: GovernanceOrchestrator = Depends(get_orchestrator),
):
    """
    Stop automation for a lead.

    Returns 503 when the dispatch service could not confirm the stop; the
    lead is then NOT marked as stopped and the call should be retried.
    """
    try:
        ack = orchestrator.request_stop(lead_id, request.reason)
    except LeadNotFound:
        raise _not_found(lead_id)
    except (DispatchUnavailable, RepositoryUnavailable) as e:
        raise _unavailable(e)

    return StopResponse(
        lead_id=ack.lead_id,
        stopped=True,
        reason=ack.reason,
        message=ack.message,
    )


@router.post(
    "/leads/{lead_id}/status-changed",
    response_model=StopDecisionResponse,
    summary="Handle Status Change",
    description="Evaluate stop conditions after a pipeline status change and stop automation if required."
)
def handle_status_change(
    lead_id: UUID,
    orchestrator: GovernanceOrchestrator = Depends(get_orchestrator),
):
    try:
        decision = orchestrator.enforce_stop_conditions(lead_id)
    except LeadNotFound:
        raise _not_found(lead_id)
    except (DispatchUnavailable, RepositoryUnavailable) as e:
        raise _unavailable(e)

    return StopDecisionResponse(should_stop=decision.should_stop, reason=decision.reason)


@router.post(
    "/leads/{lead_id}/verify-contact",
    status_code=204,
    response_class=Response,
    summary="Verify Lead Contact",
)
def verify_lead_contact(
    lead_id: UUID,
    orchestrator: GovernanceOrchestrator = Depends(get_orchestrator),
):
    try:
        orchestrator.verify_contact(lead_id)
    except LeadNotFound:
        raise _not_found(lead_id)
    except RepositoryUnavailable as e:
        raise _unavailable(e)

    return Response(status_code=204)
