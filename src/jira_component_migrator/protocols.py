"""Protocol for the remote component directory.

The snapshot store and the migration engine only need two operations from
the remote service: list the components of a project and create one. Typing
against this protocol instead of ``JiraClient`` keeps both usable with any
implementation, including in-memory fakes in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .models import Component


class ComponentDirectory(Protocol):
    """Read and write access to the components of remote projects."""

    def list_components(self, project: str) -> list[Component]:
        """Return all components of ``project`` in the order the service returns them.

        Raises:
            AuthError: If the credential is rejected
            NotFoundError: If the project does not exist
            TransportError: On network failures and server errors
        """
        ...

    def create_component(self, project: str, name: str, description: str | None) -> Component:
        """Create a component and return it with its new identifier.

        Raises:
            ValidationError: If the service rejects the component (e.g. duplicate name)
            TransportError: On network failures and server errors
        """
        ...
