"""
Lead repository (persistence).

This module provides *only* persistence operations for the fields the
governance engine reads and writes. No business rules (eligibility, stop
conditions, classification) belong here.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from domain.lead import LeadSnapshot, LeadStatus, SourceClassification
from repositories.client import get_supabase
from repositories.errors import InvalidLeadRecord, LeadNotFound, RepositoryUnavailable

logger = logging.getLogger(__name__)

# Supabase table name for Lead records.
# Keep this aligned with your database schema.
_LEADS_TABLE: str = "leads"

_SNAPSHOT_COLUMNS: str = ", ".join([
    "id",
    "status",
    "source",
    "source_classification",
    "contact_verified",
    "automation_stopped",
    "email_bounce",
    "whatsapp_initiated",
    "whatsapp_opt_in",
    "detected_country",
    "detected_timezone",
    "phone",
    "email",
])

# The only columns this engine is allowed to write.
WRITABLE_FIELDS = frozenset({
    "detected_country",
    "detected_timezone",
    "source_classification",
    "automation_stopped",
    "contact_verified",
})

# NULL reads as False, so both count as "not stopped yet".
_NOT_STOPPED_FILTER: str = "automation_stopped.is.null,automation_stopped.is.false"


def _parse_classification(value: Any, lead_id: str) -> Optional[SourceClassification]:
    """
    Parse a stored classification.

    Unknown values map to COLD_IMPORTED, the most restrictive classification.
    """

    if value is None or value == "":
        return None
    try:
        return SourceClassification(str(value))
    except ValueError:
        logger.warning(
            f"Unknown source_classification on lead {lead_id}; treating as cold_imported",
            extra={
                "lead_id": lead_id,
                "stored_value": str(value)[:100],
                "fallback": SourceClassification.COLD_IMPORTED.value,
            },
        )
        return SourceClassification.COLD_IMPORTED


def _row_to_snapshot(row: Mapping[str, Any]) -> LeadSnapshot:
    """Convert a Supabase row into a LeadSnapshot."""

    # Helper to convert empty strings to None
    def get_optional(key: str) -> str | None:
        value = row.get(key)
        return str(value) if value else None

    lead_id = str(row["id"])

    return LeadSnapshot(
        lead_id=UUID(lead_id),
        status=LeadStatus(str(row["status"])),
        source=get_optional("source"),
        source_classification=_parse_classification(row.get("source_classification"), lead_id),

        # Governance flags; NULL columns read as False
        contact_verified=bool(row.get("contact_verified")),
        automation_stopped=bool(row.get("automation_stopped")),
        email_bounce=bool(row.get("email_bounce")),
        whatsapp_initiated=bool(row.get("whatsapp_initiated")),
        whatsapp_opt_in=bool(row.get("whatsapp_opt_in")),

        detected_country=get_optional("detected_country"),
        detected_timezone=get_optional("detected_timezone"),
        phone=get_optional("phone"),
        email=get_optional("email"),
    )


def _validate_update(fields: Mapping[str, Any]) -> None:
    unknown = set(fields) - WRITABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not writable by the governance engine: {sorted(unknown)}")

    if "automation_stopped" in fields and fields["automation_stopped"] is not True:
        raise ValueError("automation_stopped can only be set to True")

    null_fields = [key for key, value in fields.items() if value is None]
    if null_fields:
        raise ValueError(f"Refusing to blank fields: {sorted(null_fields)}")


class SupabaseLeadRepository:
    """Lead persistence backed by the Supabase `leads` table."""

    def __init__(self, client: Client | None = None) -> None:
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def get_lead(self, lead_id: UUID) -> LeadSnapshot | None:
        """
        Fetch a fresh snapshot of a lead.

        Returns:
        - LeadSnapshot if found
        - None if no record exists for the given ID

        Raises:
        - RepositoryUnavailable if Supabase returns an error or the request fails.
        - InvalidLeadRecord if the stored row has an unknown status or a bad ID.
        """

        try:
            response = (
                self.client.table(_LEADS_TABLE)
                .select(_SNAPSHOT_COLUMNS)
                .eq("id", str(lead_id))
                .limit(1)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise RepositoryUnavailable(f"Failed to fetch lead {lead_id}: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise RepositoryUnavailable(f"Failed to fetch lead {lead_id}: {error}")

        rows = getattr(response, "data", None) or []
        if not rows:
            return None

        try:
            return _row_to_snapshot(rows[0])
        except (KeyError, ValueError, TypeError) as e:
            logger.error(
                f"Stored lead {lead_id} could not be read: {e}",
                extra={"lead_id": str(lead_id), "stored_status": str(rows[0].get("status"))[:100]},
            )
            raise InvalidLeadRecord(f"Invalid stored record for lead {lead_id}: {e}") from e

    def update_lead_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> None:
        """
        Apply a partial update to a lead.

        Raises:
        - ValueError if a field is not writable, a value is None, or
          automation_stopped is anything other than True.
        - LeadNotFound if no row matched the ID.
        - RepositoryUnavailable if Supabase returns an error or the request fails.

        Notes:
        - Empty updates are a no-op.
        """

        if not fields:
            return
        _validate_update(fields)

        try:
            response = (
                self.client.table(_LEADS_TABLE)
                .update(dict(fields))
                .eq("id", str(lead_id))
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise RepositoryUnavailable(f"Failed to update lead {lead_id}: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise RepositoryUnavailable(f"Failed to update lead {lead_id}: {error}")

        rows = getattr(response, "data", None)
        if rows is not None and len(rows) == 0:
            raise LeadNotFound(f"Lead not found: {lead_id}")

    def fill_null_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> dict[str, Any]:
        """
        Write each field only where its stored value is still NULL.

        One conditional update per field (`... IS NULL`), so a value written
        concurrently by another process is never replaced.

        Returns:
        - The subset of fields that were actually written.

        Raises:
        - ValueError for the same reasons as update_lead_fields().
        - RepositoryUnavailable if Supabase returns an error or the request fails.
        """

        _validate_update(fields)

        written: dict[str, Any] = {}
        for column, value in fields.items():
            try:
                response = (
                    self.client.table(_LEADS_TABLE)
                    .update({column: value})
                    .eq("id", str(lead_id))
                    .is_(column, "null")
                    .execute()
                )
            except (APIError, httpx.HTTPError) as e:
                raise RepositoryUnavailable(f"Failed to update lead {lead_id}: {e}") from e

            error = getattr(response, "error", None)
            if error:
                raise RepositoryUnavailable(f"Failed to update lead {lead_id}: {error}")

            if getattr(response, "data", None):
                written[column] = value

        return written

    def mark_automation_stopped(self, lead_id: UUID) -> bool:
        """
        Set automation_stopped, conditional on it not being set yet.

        Returns:
        - True if this call flipped the flag
        - False if the lead was already stopped or does not exist

        Raises:
        - RepositoryUnavailable if Supabase returns an error or the request fails.
        """

        try:
            response = (
                self.client.table(_LEADS_TABLE)
                .update({"automation_stopped": True})
                .eq("id", str(lead_id))
                .or_(_NOT_STOPPED_FILTER)
                .execute()
            )
        except (APIError, httpx.HTTPError) as e:
            raise RepositoryUnavailable(f"Failed to stop lead {lead_id}: {e}") from e

        error = getattr(response, "error", None)
        if error:
            raise RepositoryUnavailable(f"Failed to stop lead {lead_id}: {error}")

        return bool(getattr(response, "data", None))


__all__ = [
    "SupabaseLeadRepository",
    "WRITABLE_FIELDS",
]
