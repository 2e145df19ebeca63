"""
Campaign dispatch client.

Calls the campaign dispatch Edge Function. The only outbound action this
engine performs is `stop_lead`, which halts all automation for a lead and
cancels anything queued for it on the dispatch side.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from supabase import Client

from repositories.client import DISPATCH_FUNCTION_NAME, get_supabase
from repositories.errors import DispatchUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StopAcknowledgement:
    """Confirmation that automation was stopped for a lead."""
    lead_id: UUID
    reason: str
    message: Optional[str] = None


def _decode_body(raw: Any) -> dict[str, Any]:
    """Decode an Edge Function reply (bytes, str or already-parsed JSON)."""

    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        decoded = json.loads(raw)
        return decoded if isinstance(decoded, dict) else {}
    return {}


class CampaignDispatchClient:
    """Invokes the dispatch Edge Function through the Supabase client."""

    def __init__(
        self,
        client: Client | None = None,
        function_name: str = DISPATCH_FUNCTION_NAME,
    ) -> None:
        self._client = client
        self.function_name = function_name

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def stop_lead(self, lead_id: UUID, reason: str) -> StopAcknowledgement:
        """
        Ask the dispatch service to stop all automation for a lead.

        Stopping is idempotent on the dispatch side, so this call is safe to
        retry.

        Raises:
            DispatchUnavailable: If the call fails or the reply is not a
                success acknowledgment.
        """
        body = {
            "action": "stop_lead",
            "lead_id": str(lead_id),
            "data": {"reason": reason},
        }

        try:
            raw = self.client.functions.invoke(
                self.function_name,
                invoke_options={"body": body},
            )
            payload = _decode_body(raw)
        except Exception as e:
            raise DispatchUnavailable(f"Stop request for lead {lead_id} failed: {e}") from e

        if payload.get("success") is not True:
            detail = payload.get("error") or payload.get("message") or "no acknowledgment"
            raise DispatchUnavailable(f"Stop request for lead {lead_id} was not acknowledged: {detail}")

        logger.info(
            f"Dispatch acknowledged stop for lead {lead_id}",
            extra={"lead_id": str(lead_id), "stop_reason": reason},
        )

        return StopAcknowledgement(
            lead_id=lead_id,
            reason=reason,
            message=payload.get("message"),
        )


__all__ = [
    "CampaignDispatchClient",
    "StopAcknowledgement",
]
