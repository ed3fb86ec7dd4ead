"""
Pytest configuration and fixtures.

- Integration tests are skipped unless a real Jira instance is configured
  through environment variables, and fail on any WARNING logged by the code
  under test.
- Unit tests get an in-memory component directory standing in for Jira.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from typing_extensions import override

import pytest

from jira_component_migrator.exceptions import NotFoundError, ValidationError
from jira_component_migrator.models import Component, Phase, Snapshot

if TYPE_CHECKING:
    from collections.abc import Generator

INTEGRATION_ENV_VARS: tuple[str, ...] = (
    "JIRA_TEST_URL",
    "BOT_TOKEN",
    "SOURCE_JIRA_TEST_PROJECT",
    "DEST_JIRA_TEST_PROJECT",
)

# Warning records per integration test node id
_integration_warnings: dict[str, list[logging.LogRecord]] = {}


class FakeDirectory:
    """In-memory component directory keyed by project.

    ``create_errors`` maps a component name to the exception raised when
    creating it.
    """

    def __init__(self, projects: dict[str, list[Component]] | None = None) -> None:
        self.projects: dict[str, list[Component]] = {k: list(v) for k, v in (projects or {}).items()}
        self.create_errors: dict[str, Exception] = {}
        self.list_errors: dict[str, Exception] = {}
        self.access_error: Exception | None = None
        self.create_calls: list[tuple[str, str, str | None]] = []
        self._next_id = 10000

    def validate_access(self) -> dict[str, str]:
        if self.access_error is not None:
            raise self.access_error
        return {"name": "migration-bot"}

    def get_project(self, key: str) -> dict[str, str]:
        if key not in self.projects:
            msg = f"No project could be found with key '{key}'."
            raise NotFoundError(msg, status=404, payload={"errorMessages": [msg]})
        return {"key": key}

    def list_components(self, project: str) -> list[Component]:
        if project in self.list_errors:
            raise self.list_errors[project]
        return list(self.projects.get(project, []))

    def create_component(self, project: str, name: str, description: str | None) -> Component:
        self.create_calls.append((project, name, description))
        if name in self.create_errors:
            raise self.create_errors[name]
        self._next_id += 1
        created = Component(id=str(self._next_id), name=name, description=description)
        self.projects.setdefault(project, []).append(created)
        return created


def make_snapshot(project: str, phase: Phase, *items: tuple[str, str]) -> Snapshot:
    """Build a snapshot from ``(id, name)`` pairs."""
    return Snapshot(
        project=project,
        phase=phase,
        components=tuple(Component(id=item_id, name=name) for item_id, name in items),
    )


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory(
        {
            "SRC": [
                Component(id="1", name="API", description="REST layer"),
                Component(id="2", name="UI", description=None),
            ],
            "DST": [Component(id="9", name="API")],
        }
    )


@pytest.fixture
def duplicate_name_error() -> ValidationError:
    return ValidationError(
        "name already exists", status=400, payload={"errorMessages": ["name already exists"], "errors": {}}
    )


class _WarningCollector(logging.Handler):
    """Collects WARNING and above emitted while one integration test runs."""

    records: list[logging.LogRecord]

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records = []

    @override
    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture(autouse=True)
def check_integration_test_env_vars(request: pytest.FixtureRequest) -> None:
    """Skip integration tests when no Jira test instance is configured."""
    if request.node.get_closest_marker("integration") is None:
        return
    missing = [name for name in INTEGRATION_ENV_VARS if not os.environ.get(name)]
    if missing:
        pytest.skip(f"Integration tests require environment variables: {', '.join(missing)}")


@pytest.fixture(autouse=True)
def collect_integration_warnings(request: pytest.FixtureRequest) -> Generator[None]:
    """Attach a warning collector to the root logger for integration tests."""
    if request.node.get_closest_marker("integration") is None:
        yield
        return

    collector = _WarningCollector()
    _integration_warnings[request.node.nodeid] = collector.records
    logging.getLogger().addHandler(collector)
    try:
        yield
    finally:
        logging.getLogger().removeHandler(collector)


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item: pytest.Item, call: pytest.CallInfo[None]) -> Generator[None]:  # type: ignore[misc]
    """Fail a passing integration test when the migration logged warnings against real Jira."""
    outcome = yield
    report = outcome.get_result()
    if call.when != "call":
        return

    records = _integration_warnings.pop(item.nodeid, [])
    if report.outcome == "passed" and records:
        details = "\n".join(f"  - {r.levelname} {r.name}: {r.getMessage()}" for r in records)
        report.outcome = "failed"
        report.longrepr = f"{len(records)} warning(s) logged during integration test:\n{details}"
