"""
Custom exception classes for the Jira component migration tool.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration errors."""


class PreconditionError(MigrationError):
    """Raised before any snapshot is taken when the run cannot start.

    Covers missing or rejected credentials, unreachable or nonexistent
    projects and unusable configuration values.
    """


class JiraApiError(MigrationError):
    """A non-successful response (or no response at all) from the Jira REST API."""

    status: int | None
    payload: object | None

    def __init__(self, message: str, *, status: int | None = None, payload: object | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class AuthError(JiraApiError):
    """Raised on HTTP 401/403."""


class NotFoundError(JiraApiError):
    """Raised on HTTP 404."""


class ValidationError(JiraApiError):
    """Raised on any other 4xx, typically when Jira rejects a component create."""


class TransportError(JiraApiError):
    """Raised on 5xx responses, network failures and unparseable bodies."""


def error_message_from_payload(payload: object) -> str:
    """Extract the human-readable cause from a Jira error body.

    Jira reports errors as ``{"errorMessages": [...], "errors": {field: message}}``.
    ``errorMessages`` wins when non-empty, then ``errors``.
    """
    if isinstance(payload, dict):
        messages = payload.get("errorMessages")
        if isinstance(messages, list) and messages:
            return " ".join(str(m) for m in messages)
        errors = payload.get("errors")
        if isinstance(errors, dict) and errors:
            return "; ".join(f"{field}: {message}" for field, message in errors.items())
        if isinstance(errors, str) and errors:
            return errors
    return "Unknown error"
