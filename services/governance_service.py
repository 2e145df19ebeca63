"""
Automation governance service.

Sequences the pure evaluators against fresh lead snapshots, persists derived
fields, and asks the dispatch service to stop a lead's automation.

Handles:
- Country/timezone/classification detection, filling only missing fields
- Eligibility, stop-condition and channel-permission reports
- Confirmed stops: the dispatch acknowledgment is authoritative and the local
  automation_stopped flag is written only after it
- Per-lead serialization of all read-modify-write sequences
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol
from uuid import UUID

from domain.channel_policy import ChannelPermission, email_permission, whatsapp_permission
from domain.eligibility import EligibilityDecision, evaluate_eligibility
from domain.lead import LeadSnapshot
from domain.metadata import LeadMetadata, derive_metadata
from domain.stop_conditions import REASON_ALREADY_STOPPED, StopDecision, evaluate_stop
from repositories.dispatch_client import CampaignDispatchClient, StopAcknowledgement
from repositories.errors import DispatchUnavailable, LeadNotFound, RepositoryUnavailable
from repositories.lead_repository import SupabaseLeadRepository
from services.lead_locks import LeadLockRegistry
from services.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_STOP_REASON = "Manual stop"


class LeadRepository(Protocol):
    def get_lead(self, lead_id: UUID) -> Optional[LeadSnapshot]: ...

    def update_lead_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> None: ...

    def fill_null_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> dict[str, Any]: ...

    def mark_automation_stopped(self, lead_id: UUID) -> bool: ...


class DispatchService(Protocol):
    def stop_lead(self, lead_id: UUID, reason: str) -> StopAcknowledgement: ...


@dataclass(frozen=True, slots=True)
class GovernanceReport:
    """
    Everything the dispatch service needs before a send attempt.

    metadata_persisted is False when derived metadata could not be written;
    the report is then based on the previously stored classification.
    """
    lead_id: UUID
    eligibility: EligibilityDecision
    stop: StopDecision
    whatsapp: ChannelPermission
    email: ChannelPermission
    metadata_persisted: bool = True


class GovernanceOrchestrator:
    """The only component of the engine that performs I/O."""

    def __init__(
        self,
        repository: LeadRepository | None = None,
        dispatcher: DispatchService | None = None,
        retry_policy: RetryPolicy | None = None,
        locks: LeadLockRegistry | None = None,
    ) -> None:
        self.repository = repository if repository is not None else SupabaseLeadRepository()
        self.dispatcher = dispatcher if dispatcher is not None else CampaignDispatchClient()
        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self.locks = locks if locks is not None else LeadLockRegistry()

    def _read(self, lead_id: UUID) -> LeadSnapshot:
        lead = self.repository.get_lead(lead_id)
        if lead is None:
            raise LeadNotFound(f"Lead not found: {lead_id}")
        return lead

    def detect_and_classify(self, lead_id: UUID) -> LeadMetadata:
        """
        Derive country, timezone and classification and fill in the ones
        still missing on the lead.

        Stored values are never replaced or blanked; the returned metadata
        holds the stored value where there is one.

        Raises:
            LeadNotFound: If the lead does not exist.
            RepositoryUnavailable: If the read or the write fails.
        """
        with self.locks.hold(lead_id):
            lead = self._read(lead_id)
            metadata = derive_metadata(lead)
            missing = metadata.missing_fields(lead)
            if missing:
                self.repository.fill_null_fields(lead_id, missing)

        logger.info(
            f"Lead {lead_id} classified as {metadata.classification.value}",
            extra={
                "lead_id": str(lead_id),
                "classification": metadata.classification.value,
                "detected_country": metadata.country,
                "detected_timezone": metadata.timezone,
            },
        )
        return metadata

    def evaluate_lead(self, lead_id: UUID) -> GovernanceReport:
        """
        Refresh derived metadata, then evaluate every governance decision.

        A failed metadata write does not block evaluation; the stored
        classification (possibly not yet computed) is used instead.
        """
        metadata_persisted = True
        try:
            self.detect_and_classify(lead_id)
        except RepositoryUnavailable as e:
            metadata_persisted = False
            logger.warning(
                f"Could not persist metadata for lead {lead_id}; evaluating stored values",
                extra={"lead_id": str(lead_id), "error": str(e)},
            )

        lead = self._read(lead_id)
        return GovernanceReport(
            lead_id=lead_id,
            eligibility=evaluate_eligibility(lead),
            stop=evaluate_stop(lead),
            whatsapp=whatsapp_permission(lead),
            email=email_permission(lead),
            metadata_persisted=metadata_persisted,
        )

    def request_stop(self, lead_id: UUID, reason: str = DEFAULT_STOP_REASON) -> StopAcknowledgement:
        """
        Stop all automation for a lead.

        The dispatch service is called first (with retries); the local
        automation_stopped flag is written only after it acknowledged. A lead
        that is already stopped is acknowledged without a remote call.

        Raises:
            LeadNotFound: If the lead does not exist.
            DispatchUnavailable: If the stop could not be confirmed. The local
                flag is left untouched.
            RepositoryUnavailable: If the stop was confirmed but the local flag
                could not be written. Calling again is safe.
        """
        reason = reason or DEFAULT_STOP_REASON

        with self.locks.hold(lead_id):
            try:
                lead = self._read(lead_id)
            except RepositoryUnavailable as e:
                # A stop must not be blocked by the lead store, including an
                # unreadable row (InvalidLeadRecord).
                lead = None
                logger.warning(
                    f"Could not read lead {lead_id} before stop; requesting stop anyway",
                    extra={"lead_id": str(lead_id), "error": str(e)},
                )

            if lead is not None and lead.automation_stopped:
                return StopAcknowledgement(lead_id=lead_id, reason=reason, message=REASON_ALREADY_STOPPED)

            acknowledgement = self.retry_policy.call(
                lambda: self.dispatcher.stop_lead(lead_id, reason),
                retry_on=(DispatchUnavailable,),
                description=f"Stop request for lead {lead_id}",
            )

            # Conditional write: only flips a flag that is not set yet.
            flipped = self.repository.mark_automation_stopped(lead_id)

        logger.info(
            f"Automation stopped for lead {lead_id}: {reason}",
            extra={"lead_id": str(lead_id), "stop_reason": reason, "flag_written": flipped},
        )
        return acknowledgement

    def enforce_stop_conditions(self, lead_id: UUID) -> StopDecision:
        """
        Evaluate stop conditions after a status change and stop if required.

        Raises the same errors as request_stop() when a stop is needed.
        """
        lead = self._read(lead_id)
        decision = evaluate_stop(lead)

        if decision.should_stop and not lead.automation_stopped:
            self.request_stop(lead_id, decision.reason or DEFAULT_STOP_REASON)

        return decision

    def verify_contact(self, lead_id: UUID) -> None:
        """Mark a lead's contact details as verified."""

        with self.locks.hold(lead_id):
            self._read(lead_id)
            self.repository.update_lead_fields(lead_id, {"contact_verified": True})


__all__ = [
    "GovernanceOrchestrator",
    "GovernanceReport",
    "LeadRepository",
    "DispatchService",
]
