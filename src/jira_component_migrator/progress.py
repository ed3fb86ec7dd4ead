"""Console rendering of engine events."""

from __future__ import annotations

from typing import TYPE_CHECKING, TextIO

from .models import OutcomeStatus

if TYPE_CHECKING:
    from .engine import OutcomeEvent

_BAR_WIDTH = 30
_NAME_WIDTH = 35


def format_progress(index: int, total: int, name: str) -> str:
    """Format a progress line such as ``[ 50%] [1/2] ███...░░░ API``."""
    percent = index * 100 // total if total else 100
    filled = percent * _BAR_WIDTH // 100
    bar = "█" * filled + "░" * (_BAR_WIDTH - filled)
    if len(name) > _NAME_WIDTH:
        name = name[: _NAME_WIDTH - 3] + "..."
    return f"[{percent:3d}%] [{index}/{total}] {bar} {name}"


def format_outcome_line(event: OutcomeEvent) -> str:
    outcome = event.outcome
    match outcome.status:
        case OutcomeStatus.SKIPPED:
            return f"  SKIPPED: {outcome.detail}"
        case OutcomeStatus.DRY_RUN:
            return f"  Would migrate: {outcome.name}"
        case OutcomeStatus.MIGRATED:
            return f"  SUCCESS: Created component (New ID: {outcome.dest_id})"
        case OutcomeStatus.FAILED:
            return f"  FAILED: {outcome.detail}"


class ConsoleProgress:
    """Engine observer that prints one progress line and one result line per component."""

    _stream: TextIO | None

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def __call__(self, event: OutcomeEvent) -> None:
        print(format_progress(event.index, event.total, event.outcome.name), file=self._stream)
        print(format_outcome_line(event), file=self._stream)
