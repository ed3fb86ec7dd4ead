"""Post-migration verification of the destination project."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import Phase, VerificationResult

if TYPE_CHECKING:
    from .models import MigrationResult, Snapshot
    from .snapshots import SnapshotStore

logger: logging.Logger = logging.getLogger(__name__)


def verify(
    store: SnapshotStore,
    dest_project: str,
    dest_before: Snapshot,
    result: MigrationResult,
) -> tuple[Snapshot, VerificationResult]:
    """Re-read the destination and compare its growth with the migrated count.

    Other users may add or remove components while the run is in progress,
    so a mismatch is reported rather than raised.
    """
    dest_after = store.capture(dest_project, Phase.DEST_AFTER)
    verification = VerificationResult(
        before_count=len(dest_before),
        after_count=len(dest_after),
        migrated_count=result.counts.migrated,
    )
    if verification.diverged:
        logger.warning(
            f"Destination {dest_project} grew by {verification.delta} components "
            f"but {verification.migrated_count} were migrated"
        )
    else:
        logger.info(f"Verified {verification.delta} new components in {dest_project}")
    return dest_after, verification
