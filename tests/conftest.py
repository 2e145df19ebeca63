"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import domain,
repositories, services and api, and provides in-memory stand-ins for the lead
store, the Supabase query builder and the dispatch service.
"""

import sys
from dataclasses import replace
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.lead import LeadSnapshot, LeadStatus, SourceClassification  # noqa: E402
from repositories.dispatch_client import StopAcknowledgement  # noqa: E402
from repositories.errors import DispatchUnavailable, RepositoryUnavailable  # noqa: E402
from services.governance_service import GovernanceOrchestrator  # noqa: E402
from services.retry import RetryPolicy  # noqa: E402

LEAD_ID = UUID("00000000-0000-0000-0000-000000000001")


class InMemoryLeadRepository:
    """Lead store keeping snapshots in a dict and recording every update."""

    def __init__(self) -> None:
        self.leads: Dict[UUID, LeadSnapshot] = {}
        self.updates: List[Tuple[UUID, Dict[str, Any]]] = []
        self.fail_reads = False
        self.fail_writes = False

    def add(self, lead: LeadSnapshot) -> None:
        self.leads[lead.lead_id] = lead

    def get_lead(self, lead_id: UUID) -> Optional[LeadSnapshot]:
        if self.fail_reads:
            raise RepositoryUnavailable("store offline")
        return self.leads.get(lead_id)

    def _apply(self, lead_id: UUID, values: Dict[str, Any]) -> None:
        self.updates.append((lead_id, dict(values)))
        if "source_classification" in values:
            values["source_classification"] = SourceClassification(values["source_classification"])
        self.leads[lead_id] = replace(self.leads[lead_id], **values)

    def update_lead_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> None:
        if self.fail_writes:
            raise RepositoryUnavailable("store offline")
        self._apply(lead_id, dict(fields))

    def fill_null_fields(self, lead_id: UUID, fields: Mapping[str, Any]) -> Dict[str, Any]:
        if self.fail_writes:
            raise RepositoryUnavailable("store offline")

        lead = self.leads[lead_id]
        written = {key: value for key, value in fields.items() if getattr(lead, key) is None}
        if written:
            self._apply(lead_id, dict(written))
        return written

    def mark_automation_stopped(self, lead_id: UUID) -> bool:
        if self.fail_writes:
            raise RepositoryUnavailable("store offline")

        lead = self.leads.get(lead_id)
        if lead is None or lead.automation_stopped:
            return False
        self._apply(lead_id, {"automation_stopped": True})
        return True


class FakeDispatchService:
    """Dispatch stand-in that can fail a number of times before acknowledging."""

    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.calls: List[Tuple[UUID, str]] = []

    def stop_lead(self, lead_id: UUID, reason: str) -> StopAcknowledgement:
        self.calls.append((lead_id, reason))
        if self.failures > 0:
            self.failures -= 1
            raise DispatchUnavailable("dispatch offline")
        return StopAcknowledgement(lead_id=lead_id, reason=reason, message="Automation stopped")


# ---------------------------------------------------------------------------
# Supabase query builder stand-in
# ---------------------------------------------------------------------------

def _matches_condition(row: Mapping[str, Any], condition: str) -> bool:
    """Evaluate one PostgREST `column.operator.value` condition."""

    column, operator, value = condition.split(".", 2)
    stored = row.get(column)
    if operator == "is":
        return stored is {"null": None, "true": True, "false": False}[value]
    if operator == "eq":
        return str(stored) == value
    raise ValueError(f"Unsupported operator in fake: {operator}")


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self.client = client
        self.table = table
        self.filters: Dict[str, Any] = {}
        self.null_filters: List[str] = []
        self.or_filters: List[str] = []
        self.payload: Optional[Dict[str, Any]] = None
        self.columns: Optional[str] = None

    def select(self, columns: str) -> "FakeQuery":
        self.columns = columns
        return self

    def update(self, payload: Dict[str, Any]) -> "FakeQuery":
        self.payload = payload
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self.filters[column] = value
        return self

    def is_(self, column: str, value: str) -> "FakeQuery":
        assert value == "null"
        self.null_filters.append(column)
        return self

    def or_(self, filters: str) -> "FakeQuery":
        self.or_filters.append(filters)
        return self

    def limit(self, count: int) -> "FakeQuery":
        return self

    def _matches(self, row: Mapping[str, Any]) -> bool:
        return (
            all(str(row.get(k)) == str(v) for k, v in self.filters.items())
            and all(row.get(column) is None for column in self.null_filters)
            and all(
                any(_matches_condition(row, condition) for condition in group.split(","))
                for group in self.or_filters
            )
        )

    def execute(self) -> SimpleNamespace:
        self.client.queries.append(self)
        if self.client.raise_error is not None:
            raise self.client.raise_error

        matched = [row for row in self.client.rows if self._matches(row)]
        if self.payload is not None:
            for row in matched:
                row.update(self.payload)
        return SimpleNamespace(data=[dict(row) for row in matched], error=self.client.response_error)


class FakeSupabase:
    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows = rows or []
        self.queries: List[FakeQuery] = []
        self.raise_error: Optional[Exception] = None
        self.response_error: Optional[str] = None

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def lead_row(**overrides: Any) -> Dict[str, Any]:
    """A `leads` row as Supabase returns it; defaults describe an eligible lead."""

    row: Dict[str, Any] = {
        "id": str(LEAD_ID),
        "status": "contacted",
        "source": "referral",
        "source_classification": "referral",
        "contact_verified": True,
        "automation_stopped": False,
        "email_bounce": None,
        "whatsapp_initiated": False,
        "whatsapp_opt_in": False,
        "detected_country": "",
        "detected_timezone": None,
        "phone": "+971501234567",
        "email": None,
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_lead() -> Callable[..., LeadSnapshot]:
    """Factory for lead snapshots; defaults describe an eligible lead."""

    def _make(**overrides: Any) -> LeadSnapshot:
        values: Dict[str, Any] = {
            "lead_id": LEAD_ID,
            "status": LeadStatus.CONTACTED,
            "source": "referral",
            "source_classification": SourceClassification.REFERRAL,
            "contact_verified": True,
            "automation_stopped": False,
            "email_bounce": False,
            "whatsapp_initiated": False,
            "whatsapp_opt_in": False,
        }
        values.update(overrides)
        return LeadSnapshot(**values)

    return _make


@pytest.fixture
def repository() -> InMemoryLeadRepository:
    return InMemoryLeadRepository()


@pytest.fixture
def dispatcher() -> FakeDispatchService:
    return FakeDispatchService()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def orchestrator(
    repository: InMemoryLeadRepository,
    dispatcher: FakeDispatchService,
    sleeps: List[float],
) -> GovernanceOrchestrator:
    return GovernanceOrchestrator(
        repository=repository,
        dispatcher=dispatcher,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=0.1, sleep=sleeps.append),
    )
