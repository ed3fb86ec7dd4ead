"""Run report and component id mapping.

The report is a pure function of the run metadata, the snapshots and the
outcome sequence. Nothing time-dependent is read while rendering, so
``regenerate_report()`` on a finished run directory reproduces the original
``component_mapping.csv`` and ``migration_report.txt`` byte for byte.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .conflicts import CONFLICTS_FILE
from .exceptions import MigrationError
from .models import MigrationCounts, Outcome, OutcomeStatus, Phase, RunMetadata, Snapshot, VerificationResult
from .outcome_log import MIGRATION_LOG_FILE, read_outcome_log
from .snapshots import SNAPSHOT_FILES, SnapshotStore

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

logger: logging.Logger = logging.getLogger(__name__)

METADATA_FILE: Final[str] = "run_metadata.json"
MAPPING_FILE: Final[str] = "component_mapping.csv"
REPORT_FILE: Final[str] = "migration_report.txt"
MAPPING_HEADER: Final[tuple[str, ...]] = ("Component_Name", "Source_ID", "Dest_ID", "Status")

_RULE = "=" * 40


@dataclass(frozen=True)
class MappingRow:
    """One row of the mapping artifact used when migrating issues that reference components."""

    name: str
    source_id: str
    dest_id: str
    status: str

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> MappingRow:
        return cls(
            name=outcome.name,
            source_id=outcome.source_id,
            dest_id=outcome.dest_id or "",
            status=outcome.status.mapping_label,
        )


@dataclass(frozen=True)
class MigrationReport:
    metadata: RunMetadata
    counts: MigrationCounts
    outcomes: tuple[Outcome, ...]
    mapping: tuple[MappingRow, ...]
    source_count: int | None = None
    verification: VerificationResult | None = None

    @property
    def has_failures(self) -> bool:
        return self.counts.failed > 0


def build_report(
    metadata: RunMetadata,
    source: Snapshot | None,
    dest_before: Snapshot | None,
    dest_after: Snapshot | None,
    outcomes: Sequence[Outcome],
) -> MigrationReport:
    counts = MigrationCounts.from_outcomes(outcomes)
    verification = None
    if dest_before is not None and dest_after is not None:
        verification = VerificationResult(
            before_count=len(dest_before),
            after_count=len(dest_after),
            migrated_count=counts.migrated,
        )
    return MigrationReport(
        metadata=metadata,
        counts=counts,
        outcomes=tuple(outcomes),
        mapping=tuple(MappingRow.from_outcome(outcome) for outcome in outcomes),
        source_count=len(source) if source is not None else None,
        verification=verification,
    )


def render_mapping_csv(rows: Iterable[MappingRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(MAPPING_HEADER)
    for row in rows:
        writer.writerow((row.name, row.source_id, row.dest_id, row.status))
    return buffer.getvalue()


def render_summary(report: MigrationReport) -> str:
    """Render the human-readable ``migration_report.txt``."""
    meta = report.metadata
    counts = report.counts
    lines = [
        _RULE,
        "JIRA Component Migration Report",
        _RULE,
        "",
        "Migration Details",
        "-----------------",
        f"Date: {meta.run_id}",
        f"Source Project: {meta.source_project}",
        f"Destination Project: {meta.dest_project}",
        f"JIRA Instance: {meta.jira_url}",
        f"Mode: {'DRY RUN' if meta.dry_run else 'LIVE'}",
        "",
        "Migration Statistics",
        "--------------------",
    ]
    if report.source_count is not None:
        lines.append(f"Total Source Components: {report.source_count}")
    lines += [
        f"Processed: {counts.total}",
        f"Successfully Migrated: {counts.migrated}",
        f"Failed: {counts.failed}",
        f"Skipped (duplicates): {counts.skipped}",
    ]
    if meta.dry_run:
        lines.append(f"Would Be Migrated: {counts.dry_run}")
    lines.append("")

    if report.verification is not None:
        v = report.verification
        lines += [
            "Destination Component Count",
            "----------------------------",
            f"Before Migration: {v.before_count}",
            f"After Migration: {v.after_count}",
            f"Net Change: {v.delta}",
        ]
        if v.diverged:
            lines.append(f"WARNING: net change differs from migrated count ({v.migrated_count})")
        lines.append("")

    failed = [outcome for outcome in report.outcomes if outcome.status is OutcomeStatus.FAILED]
    if failed:
        lines += ["Failed Components", "-----------------"]
        lines += [f"- {outcome.name} (ID: {outcome.source_id}): {outcome.detail}" for outcome in failed]
        lines.append("")

    lines += [
        "Generated Files",
        "---------------",
        f"- {SNAPSHOT_FILES[Phase.SOURCE]:<30} : Backup of source components",
        f"- {SNAPSHOT_FILES[Phase.DEST_BEFORE]:<30} : Destination components before migration",
        f"- {SNAPSHOT_FILES[Phase.DEST_AFTER]:<30} : Destination components after migration",
        f"- {CONFLICTS_FILE:<30} : List of conflicting component names",
        f"- {MIGRATION_LOG_FILE:<30} : Detailed migration log",
        f"- {MAPPING_FILE:<30} : Component ID mapping (old to new)",
        f"- {REPORT_FILE:<30} : This report",
        "",
        "Next Steps",
        "----------",
    ]
    if meta.dry_run:
        lines += [
            "This was a DRY RUN. Review the results and run again without --dry-run flag",
            "to perform the actual migration.",
        ]
    else:
        lines += [
            f"1. Review the {MAPPING_FILE} file for ID mappings",
            "2. Use this mapping for migrating features/issues to maintain component associations",
            f"3. Verify components in JIRA UI: {meta.jira_url}/projects/{meta.dest_project}",
        ]
        if report.has_failures:
            lines += [
                f"4. IMPORTANT: Some components failed to migrate. Review {MIGRATION_LOG_FILE}",
                "   and retry failed components manually if needed.",
            ]
    lines += ["", _RULE, "End of Report", _RULE]
    return "\n".join(lines) + "\n"


def write_report(run_dir: Path, report: MigrationReport) -> None:
    _ = (run_dir / MAPPING_FILE).write_text(render_mapping_csv(report.mapping), encoding="utf-8")
    _ = (run_dir / REPORT_FILE).write_text(render_summary(report), encoding="utf-8")
    logger.info(f"Report written to {run_dir / REPORT_FILE}")


def write_run_metadata(run_dir: Path, metadata: RunMetadata) -> None:
    _ = (run_dir / METADATA_FILE).write_text(
        json.dumps(metadata.to_json(), indent=2, sort_keys=True) + "\n", encoding="utf-8"
    )


def read_run_metadata(run_dir: Path) -> RunMetadata:
    path = run_dir / METADATA_FILE
    try:
        return RunMetadata.from_json(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, KeyError) as e:
        msg = f"Cannot read run metadata {path}: {e}"
        raise MigrationError(msg) from e


def regenerate_report(run_dir: Path) -> MigrationReport:
    """Rebuild and rewrite the report of a finished run from its persisted artifacts."""
    if not run_dir.is_dir():
        msg = f"Run directory does not exist: {run_dir}"
        raise MigrationError(msg)

    metadata = read_run_metadata(run_dir)
    store = SnapshotStore(run_dir)

    def load(project: str, phase: Phase) -> Snapshot | None:
        return store.load(project, phase) if store.exists(phase) else None

    report = build_report(
        metadata,
        load(metadata.source_project, Phase.SOURCE),
        load(metadata.dest_project, Phase.DEST_BEFORE),
        load(metadata.dest_project, Phase.DEST_AFTER),
        read_outcome_log(run_dir / MIGRATION_LOG_FILE),
    )
    write_report(run_dir, report)
    return report
