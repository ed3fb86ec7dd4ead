"""Data models shared by the snapshot store, engine, verifier and reporter.

Every model here is write-once: snapshots and outcomes are created during a
run and never mutated afterwards. Statistics are always derived from the
outcome sequence, never tracked in a separate counter.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Phase(Enum):
    """Moment at which a project listing was captured."""

    SOURCE = "source"
    DEST_BEFORE = "dest-before"
    DEST_AFTER = "dest-after"


class OutcomeStatus(Enum):
    """Terminal state of one source component."""

    MIGRATED = "migrated"
    SKIPPED = "skipped"
    FAILED = "failed"
    DRY_RUN = "dry_run"

    @property
    def log_token(self) -> str:
        """Status token used in ``migration_log.txt``."""
        return _LOG_TOKENS[self]

    @property
    def mapping_label(self) -> str:
        """Status column value used in ``component_mapping.csv``."""
        return self.name

    @classmethod
    def from_log_token(cls, token: str) -> OutcomeStatus:
        for status, status_token in _LOG_TOKENS.items():
            if status_token == token:
                return status
        msg = f"Unknown migration log status: {token!r}"
        raise ValueError(msg)


_LOG_TOKENS: dict[OutcomeStatus, str] = {
    OutcomeStatus.MIGRATED: "SUCCESS",
    OutcomeStatus.SKIPPED: "SKIP",
    OutcomeStatus.FAILED: "FAILED",
    OutcomeStatus.DRY_RUN: "DRY_RUN",
}


@dataclass(frozen=True)
class Component:
    """A Jira project component.

    ``raw`` keeps the listing entry exactly as Jira returned it so snapshots
    can be persisted without transformation.
    """

    id: str
    name: str
    description: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Component:
        description = data.get("description")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(description) if description is not None else None,
            raw=dict(data),
        )

    def to_json(self) -> dict[str, Any]:
        if self.raw:
            return dict(self.raw)
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description is not None:
            data["description"] = self.description
        return data


@dataclass(frozen=True)
class Snapshot:
    """Immutable listing of one project's components at one instant.

    Component order is the order returned by Jira and is never re-sorted.
    """

    project: str
    phase: Phase
    components: tuple[Component, ...]

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)

    def names(self) -> set[str]:
        return {component.name for component in self.components}

    def to_json(self) -> list[dict[str, Any]]:
        return [component.to_json() for component in self.components]

    @classmethod
    def from_json(cls, project: str, phase: Phase, data: Iterable[dict[str, Any]]) -> Snapshot:
        return cls(project=project, phase=phase, components=tuple(Component.from_json(item) for item in data))


@dataclass(frozen=True)
class Outcome:
    """Result of processing one source component."""

    name: str
    source_id: str
    status: OutcomeStatus
    detail: str
    dest_id: str | None = None  # Only set for migrated components


@dataclass(frozen=True)
class MigrationCounts:
    """Statistics derived by scanning an outcome sequence."""

    total: int = 0
    migrated: int = 0
    failed: int = 0
    skipped: int = 0
    dry_run: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[Outcome]) -> MigrationCounts:
        statuses = [outcome.status for outcome in outcomes]
        return cls(
            total=len(statuses),
            migrated=statuses.count(OutcomeStatus.MIGRATED),
            failed=statuses.count(OutcomeStatus.FAILED),
            skipped=statuses.count(OutcomeStatus.SKIPPED),
            dry_run=statuses.count(OutcomeStatus.DRY_RUN),
        )


@dataclass(frozen=True)
class MigrationResult:
    """Ordered outcome sequence produced by one engine run."""

    outcomes: tuple[Outcome, ...]
    interrupted: bool = False

    @property
    def counts(self) -> MigrationCounts:
        return MigrationCounts.from_outcomes(self.outcomes)


@dataclass(frozen=True)
class VerificationResult:
    """Destination component counts before and after a live run."""

    before_count: int
    after_count: int
    migrated_count: int

    @property
    def delta(self) -> int:
        return self.after_count - self.before_count

    @property
    def diverged(self) -> bool:
        """True when the destination grew by something other than the number of migrated components."""
        return self.delta != self.migrated_count


@dataclass(frozen=True)
class RunMetadata:
    """Identifies one migration run; persisted as ``run_metadata.json``."""

    run_id: str  # Timestamp, e.g. 20250131_142501
    jira_url: str
    source_project: str
    dest_project: str
    dry_run: bool

    def to_json(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "jira_url": self.jira_url,
            "source_project": self.source_project,
            "dest_project": self.dest_project,
            "dry_run": self.dry_run,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> RunMetadata:
        return cls(
            run_id=str(data["run_id"]),
            jira_url=str(data["jira_url"]),
            source_project=str(data["source_project"]),
            dest_project=str(data["dest_project"]),
            dry_run=bool(data["dry_run"]),
        )
