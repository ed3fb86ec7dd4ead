"""Name collision detection between the source and the destination project."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from .models import Snapshot

logger: logging.Logger = logging.getLogger(__name__)

CONFLICTS_FILE = "conflicts.txt"


def detect_conflicts(source: Snapshot, dest: Snapshot) -> frozenset[str]:
    """Return the component names present in both snapshots.

    Names compare exactly (case-sensitive, no trimming), as Jira does for
    component names within a project. Duplicate names inside the source are
    not collapsed here; each source component is classified on its own.
    """
    conflicts = frozenset(source.names() & dest.names())
    if conflicts:
        logger.info(f"Found {len(conflicts)} conflicting component name(s) in {dest.project}")
    else:
        logger.info(f"No component name conflicts with {dest.project}")
    return conflicts


def write_conflicts(path: Path, conflicts: Iterable[str]) -> None:
    """Write conflicting names sorted, one per line."""
    names = sorted(conflicts)
    _ = path.write_text("".join(f"{name}\n" for name in names), encoding="utf-8")


def read_conflicts(path: Path) -> frozenset[str]:
    return frozenset(line for line in path.read_text(encoding="utf-8").split("\n") if line)
