"""
Run orchestration for Jira component migration.

One call to ``ComponentMigrator.migrate()`` performs a complete run:

1. validate the token and both projects (fatal on failure, nothing written)
2. create the run directory ``jira_migration_<timestamp>``
3. capture the source and destination snapshots (fatal on failure)
4. detect name conflicts
5. migrate component by component (per-component failures are recorded)
6. verify the destination (live runs only, never fatal)
7. write the report and the id mapping
"""

from __future__ import annotations

import datetime as dt
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .client import JiraClient
from .conflicts import CONFLICTS_FILE, detect_conflicts, write_conflicts
from .engine import MigrationEngine, Observer
from .exceptions import AuthError, JiraApiError, MigrationError, NotFoundError, PreconditionError
from .models import Phase, RunMetadata
from .outcome_log import MIGRATION_LOG_FILE, OutcomeLog
from .reporter import MigrationReport, build_report, write_report, write_run_metadata
from .snapshots import SnapshotStore
from .verifier import verify

if TYPE_CHECKING:
    from .config import MigrationConfig
    from .models import Snapshot

logger: logging.Logger = logging.getLogger(__name__)

RUN_DIR_PREFIX: Final[str] = "jira_migration_"

_AUTH_HINTS: Final[dict[int, str]] = {
    401: "Check that the bearer token is a valid, unexpired Personal Access Token.",
    403: "The token is valid but lacks permissions; check access to both projects.",
    404: "Check the Jira URL; the /rest/api/2/myself endpoint was not found.",
}


@dataclass(frozen=True)
class RunSummary:
    """What a finished (or interrupted) run produced."""

    run_dir: Path
    report: MigrationReport
    interrupted: bool = False


class ComponentMigrator:
    """Migrates the components of one Jira project into another."""

    config: MigrationConfig
    _client: JiraClient | None
    _observers: list[Observer]
    _sleep: Callable[[float], None]
    _now: Callable[[], dt.datetime]

    def __init__(
        self,
        config: MigrationConfig,
        *,
        client: JiraClient | None = None,
        observers: Sequence[Observer] = (),
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.config = config
        self._client = client
        self._observers = list(observers)
        self._sleep = sleep
        self._now = now

    @property
    def client(self) -> JiraClient:
        if self._client is None:
            if not self.config.token:
                msg = "Bearer token is required"
                raise PreconditionError(msg)
            self._client = JiraClient(self.config.jira_url, self.config.token)
        return self._client

    def validate_prerequisites(self) -> None:
        """Check credentials and that both projects exist.

        Raises:
            PreconditionError: If the token is rejected or a project is not accessible
        """
        self.config.validate()

        try:
            user = self.client.validate_access()
        except JiraApiError as e:
            hint = _AUTH_HINTS.get(e.status or 0, f"Check network access to {self.config.jira_url}.")
            status = f"HTTP {e.status}" if e.status else "no response"
            msg = f"Authentication against {self.config.jira_url} failed ({status}): {e}. {hint}"
            raise PreconditionError(msg) from e
        logger.info(f"Authenticated to Jira as {user.get('name') or user.get('displayName') or 'unknown user'}")

        for role, key in (("Source", self.config.source_project), ("Destination", self.config.dest_project)):
            try:
                _ = self.client.get_project(str(key))
            except (AuthError, NotFoundError) as e:
                msg = f"{role} project {key} not found or not accessible (HTTP {e.status})"
                raise PreconditionError(msg) from e
            except JiraApiError as e:
                msg = f"Could not validate {role.lower()} project {key}: {e}"
                raise PreconditionError(msg) from e
            logger.info(f"{role} project {key} validated")

    def create_run_directory(self, run_id: str) -> Path:
        run_dir = self.config.output_dir / f"{RUN_DIR_PREFIX}{run_id}"
        if run_dir.exists():
            msg = f"Migration directory already exists: {run_dir}"
            raise MigrationError(msg)
        run_dir.mkdir(parents=True)
        logger.info(f"Created migration directory: {run_dir}")
        return run_dir

    def migrate(self) -> RunSummary:
        """Execute one complete run.

        Raises:
            PreconditionError: Before anything is written, if the run cannot start
            JiraApiError: If listing the source or destination fails
        """
        self.validate_prerequisites()
        source_key = str(self.config.source_project)
        dest_key = str(self.config.dest_project)

        run_id = self._now().strftime("%Y%m%d_%H%M%S")
        run_dir = self.create_run_directory(run_id)
        metadata = RunMetadata(
            run_id=run_id,
            jira_url=self.config.jira_url,
            source_project=source_key,
            dest_project=dest_key,
            dry_run=self.config.dry_run,
        )
        write_run_metadata(run_dir, metadata)

        store = SnapshotStore(run_dir, self.client)
        source = store.capture(source_key, Phase.SOURCE, persist=not self.config.skip_backup)
        dest_before = store.capture(dest_key, Phase.DEST_BEFORE)

        conflicts = detect_conflicts(source, dest_before)
        write_conflicts(run_dir / CONFLICTS_FILE, conflicts)

        engine = MigrationEngine(
            self.client,
            dry_run=self.config.dry_run,
            delay=self.config.rate_limit_delay,
            observers=self._observers,
            sleep=self._sleep,
        )
        result = engine.run(source, conflicts, dest_key, log=OutcomeLog(run_dir / MIGRATION_LOG_FILE))
        counts = result.counts
        logger.info(
            f"Processed {counts.total} components: {counts.migrated} migrated, {counts.failed} failed, "
            f"{counts.skipped} skipped, {counts.dry_run} dry run"
        )

        dest_after: Snapshot | None = None
        if self.config.dry_run:
            logger.info("Skipping verification (dry run mode)")
        elif result.interrupted:
            logger.warning("Skipping verification (run interrupted)")
        else:
            try:
                dest_after, _ = verify(store, dest_key, dest_before, result)
            except JiraApiError as e:
                logger.error(f"Failed to fetch post-migration components: {e}")  # noqa: TRY400

        # Only persisted snapshots feed the report so it can be regenerated from the run directory
        report = build_report(
            metadata, None if self.config.skip_backup else source, dest_before, dest_after, result.outcomes
        )
        write_report(run_dir, report)
        return RunSummary(run_dir=run_dir, report=report, interrupted=result.interrupted)
