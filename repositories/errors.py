"""
Errors raised by the persistence and dispatch collaborators.
"""

from __future__ import annotations


class RepositoryUnavailable(RuntimeError):
    """Raised when a read or write against the lead store fails. Retryable."""
    pass


class InvalidLeadRecord(RepositoryUnavailable):
    """Raised when a stored lead row cannot be read as a lead snapshot."""
    pass


class LeadNotFound(LookupError):
    """Raised when no lead exists for the given ID."""
    pass


class DispatchUnavailable(RuntimeError):
    """Raised when a stop request could not be confirmed by the dispatch service."""
    pass


__all__ = [
    "RepositoryUnavailable",
    "InvalidLeadRecord",
    "LeadNotFound",
    "DispatchUnavailable",
]
