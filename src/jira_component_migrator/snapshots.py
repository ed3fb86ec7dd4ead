"""Snapshot store: records project listings verbatim inside a run directory."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Final

from .exceptions import MigrationError
from .models import Phase, Snapshot

if TYPE_CHECKING:
    from pathlib import Path

    from .protocols import ComponentDirectory

logger: logging.Logger = logging.getLogger(__name__)

SNAPSHOT_FILES: Final[dict[Phase, str]] = {
    Phase.SOURCE: "source_components.json",
    Phase.DEST_BEFORE: "dest_components_before.json",
    Phase.DEST_AFTER: "dest_components_after.json",
}


def snapshot_path(run_dir: Path, phase: Phase) -> Path:
    return run_dir / SNAPSHOT_FILES[phase]


class SnapshotStore:
    """Captures and persists snapshots for one run.

    Snapshot files are write-once: capturing the same phase twice in one run
    directory is an error.
    """

    run_dir: Path
    _client: ComponentDirectory | None

    def __init__(self, run_dir: Path, client: ComponentDirectory | None = None) -> None:
        self.run_dir = run_dir
        self._client = client

    def capture(self, project: str, phase: Phase, *, persist: bool = True) -> Snapshot:
        """List ``project`` and record the listing under ``phase``.

        API errors propagate unchanged; a phase read is all-or-nothing.
        """
        if self._client is None:
            msg = "SnapshotStore has no client to capture with"
            raise MigrationError(msg)

        components = self._client.list_components(project)
        snapshot = Snapshot(project=project, phase=phase, components=tuple(components))
        if persist:
            self.save(snapshot)
        else:
            logger.warning(f"Not persisting {phase.value} snapshot of {project} (backup skipped)")
        logger.info(f"Captured {len(snapshot)} components from {project} ({phase.value})")
        return snapshot

    def save(self, snapshot: Snapshot) -> Path:
        path = snapshot_path(self.run_dir, snapshot.phase)
        if path.exists():
            msg = f"Snapshot {path.name} already exists in {self.run_dir}"
            raise MigrationError(msg)
        _ = path.write_text(json.dumps(snapshot.to_json(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        return path

    def exists(self, phase: Phase) -> bool:
        return snapshot_path(self.run_dir, phase).exists()

    def load(self, project: str, phase: Phase) -> Snapshot:
        path = snapshot_path(self.run_dir, phase)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            msg = f"Cannot read snapshot {path}: {e}"
            raise MigrationError(msg) from e
        if not isinstance(data, list):
            msg = f"Snapshot {path} does not contain a JSON array"
            raise MigrationError(msg)
        return Snapshot.from_json(project, phase, data)
