"""Migration engine: classifies and migrates source components one at a time.

Per component, in source snapshot order::

    pending ──name in conflicts──────────────► skipped
       │
       ├──dry run────────────────────────────► dry_run
       │
       └──create_component() ──ok────────────► migrated (carries new id)
                              └─JiraApiError─► failed   (run continues)

After every create attempt, successful or not, the engine waits the
configured delay before moving on; this delay is the only throttling applied
to the remote service. Requests are never issued concurrently.

The engine returns the ordered outcome sequence by value. Counts are derived
from that sequence (``MigrationResult.counts``), and presentation is left to
observers that receive one ``OutcomeEvent`` per outcome.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import JiraApiError
from .models import Component, MigrationResult, Outcome, OutcomeStatus
from .outcome_log import migrated_detail

if TYPE_CHECKING:
    from .models import Snapshot
    from .outcome_log import OutcomeLog
    from .protocols import ComponentDirectory

logger: logging.Logger = logging.getLogger(__name__)

SKIPPED_DETAIL = "Component already exists in destination"


@dataclass(frozen=True)
class OutcomeEvent:
    """Emitted once per processed component."""

    index: int  # 1-based position in the source snapshot
    total: int
    outcome: Outcome
    dry_run: bool = False


Observer = Callable[[OutcomeEvent], None]


class MigrationEngine:
    """Drives the per-component state machine for one run."""

    _client: ComponentDirectory
    dry_run: bool
    delay: float
    _observers: list[Observer]
    _sleep: Callable[[float], None]

    def __init__(
        self,
        client: ComponentDirectory,
        *,
        dry_run: bool = False,
        delay: float = 0.0,
        observers: Sequence[Observer] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay < 0:
            msg = f"Delay must not be negative, got {delay}"
            raise ValueError(msg)
        self._client = client
        self.dry_run = dry_run
        self.delay = delay
        self._observers = list(observers)
        self._sleep = sleep

    def run(
        self,
        source: Snapshot,
        conflicts: frozenset[str],
        dest_project: str,
        *,
        log: OutcomeLog | None = None,
    ) -> MigrationResult:
        """Process every source component and return the ordered outcomes.

        A ``KeyboardInterrupt`` stops the run before the next component; the
        outcomes recorded so far are returned with ``interrupted=True``.
        """
        outcomes: list[Outcome] = []
        total = len(source)
        mode = "dry run" if self.dry_run else "live"
        logger.info(f"Processing {total} components from {source.project} into {dest_project} ({mode})")

        try:
            for index, component in enumerate(source, start=1):
                outcome = self._process(component, conflicts, dest_project)
                outcomes.append(outcome)
                if log is not None:
                    log.append(outcome)
                self._emit(OutcomeEvent(index=index, total=total, outcome=outcome, dry_run=self.dry_run))

                if outcome.status in (OutcomeStatus.MIGRATED, OutcomeStatus.FAILED) and self.delay > 0:
                    self._sleep(self.delay)
        except KeyboardInterrupt:
            logger.warning(f"Interrupted after {len(outcomes)} of {total} components; recorded outcomes are kept")
            return MigrationResult(outcomes=tuple(outcomes), interrupted=True)

        return MigrationResult(outcomes=tuple(outcomes))

    def _process(self, component: Component, conflicts: frozenset[str], dest_project: str) -> Outcome:
        if component.name in conflicts:
            logger.debug(f"Skipping {component.name!r}: already exists in {dest_project}")
            return Outcome(
                name=component.name,
                source_id=component.id,
                status=OutcomeStatus.SKIPPED,
                detail=SKIPPED_DETAIL,
            )

        if self.dry_run:
            return Outcome(
                name=component.name,
                source_id=component.id,
                status=OutcomeStatus.DRY_RUN,
                detail=f"Would be migrated to {dest_project}",
            )

        try:
            created = self._client.create_component(dest_project, component.name, component.description)
        except JiraApiError as e:
            logger.warning(f"Failed to create component {component.name!r} (HTTP {e.status}): {e}")
            return Outcome(
                name=component.name,
                source_id=component.id,
                status=OutcomeStatus.FAILED,
                detail=str(e),
            )

        logger.info(f"Created component {component.name!r}: {component.id} -> {created.id}")
        return Outcome(
            name=component.name,
            source_id=component.id,
            status=OutcomeStatus.MIGRATED,
            detail=migrated_detail(created.id),
            dest_id=created.id,
        )

    def _emit(self, event: OutcomeEvent) -> None:
        for observer in self._observers:
            observer(event)
