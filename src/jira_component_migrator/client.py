"""Thin client for the parts of the Jira REST API v2 used by the migration.

Only three kinds of calls are made: an access check, project reads and
component creation. Every non-expected status is mapped to a typed
``JiraApiError`` subclass so callers can decide per error class whether to
abort the run or record a single failed component.
"""

from __future__ import annotations

import logging
from typing import Any, Final

import requests

from .exceptions import (
    AuthError,
    JiraApiError,
    NotFoundError,
    TransportError,
    ValidationError,
    error_message_from_payload,
)
from .models import Component
from .utils import redact

logger: logging.Logger = logging.getLogger(__name__)

_API_PREFIX: Final[str] = "/rest/api/2"
DEFAULT_TIMEOUT: Final[float] = 30.0


class JiraClient:
    """Remote directory client for Jira project components."""

    base_url: str
    timeout: float
    _token: str
    _session: requests.Session

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
        )

    def __repr__(self) -> str:
        return f"JiraClient(base_url={self.base_url!r})"

    def close(self) -> None:
        self._session.close()

    def validate_access(self) -> dict[str, Any]:
        """Return the authenticated user, proving the token is accepted."""
        return self._request("GET", "/myself")

    def get_project(self, key: str) -> dict[str, Any]:
        return self._request("GET", f"/project/{key}")

    def list_components(self, project: str) -> list[Component]:
        """List the components of a project in the order Jira returns them."""
        data = self._request("GET", f"/project/{project}/components")
        if not isinstance(data, list):
            msg = f"Unexpected component listing for project {project}: expected a JSON array"
            raise TransportError(msg, payload=data)
        components = [_parse_component(item, f"component listing for project {project}") for item in data]
        logger.debug(f"Listed {len(components)} components in {project}")
        return components

    def create_component(self, project: str, name: str, description: str | None) -> Component:
        """Create a component in ``project`` with the project's default assignee."""
        payload = {
            "name": name,
            "description": description or "",
            "project": project,
            "assigneeType": "PROJECT_DEFAULT",
            "isAssigneeTypeValid": True,
        }
        data = self._request("POST", "/component", json=payload, expected=(200, 201))
        if not isinstance(data, dict) or "id" not in data:
            msg = f"Jira did not return an id for the created component {name!r}"
            raise TransportError(msg, payload=data)
        return _parse_component({"name": name, "description": description, **data}, f"created component {name!r}")

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        expected: tuple[int, ...] = (200,),
    ) -> Any:
        url = f"{self.base_url}{_API_PREFIX}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            msg = f"Could not reach Jira at {self.base_url}: {redact(str(e), [self._token])}"
            raise TransportError(msg) from e

        payload = _parse_body(response)

        if response.status_code in expected:
            if payload is None:
                msg = f"{method} {path} returned HTTP {response.status_code} without a JSON body"
                raise TransportError(msg, status=response.status_code)
            return payload

        raise _error_for_status(response.status_code, payload)


def _parse_component(item: object, context: str) -> Component:
    # Jira ids are numeric strings; some instances return bare integers
    item_id = item.get("id") if isinstance(item, dict) else None
    valid_id = isinstance(item_id, str | int) and not isinstance(item_id, bool)
    if not isinstance(item, dict) or not valid_id or not isinstance(item.get("name"), str):
        msg = f"Unexpected entry in {context}: expected an object with an id and a name"
        raise TransportError(msg, payload=item)
    return Component.from_json(item)


def _parse_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _error_for_status(status: int, payload: object) -> JiraApiError:
    cause = error_message_from_payload(payload)
    if cause == "Unknown error":
        cause = f"Unknown error (HTTP {status})"

    error_class: type[JiraApiError]
    if status in (401, 403):
        error_class = AuthError
    elif status == 404:
        error_class = NotFoundError
    elif 400 <= status < 500:
        error_class = ValidationError
    else:
        error_class = TransportError
    return error_class(cause, status=status, payload=payload)
