"""Append-only persistence of the outcome sequence (``migration_log.txt``).

Each line is ``STATUS|name|source_id|detail`` where the last field holds the
new destination id for migrated components. Backslashes, pipes and newlines
inside fields are backslash-escaped so every line parses back to exactly the
outcome that was written.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .exceptions import MigrationError
from .models import Outcome, OutcomeStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

MIGRATION_LOG_FILE = "migration_log.txt"

_FIELD_SPLIT = re.compile(r"(?<!\\)((?:\\\\)*)\|")


def migrated_detail(dest_id: str) -> str:
    return f"Created component (New ID: {dest_id})"


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace("|", "\\|").replace("\n", "\\n")


def _unescape(value: str) -> str:
    out: list[str] = []
    chars = iter(value)
    for char in chars:
        if char != "\\":
            out.append(char)
            continue
        escaped = next(chars, "")
        out.append("\n" if escaped == "n" else escaped)
    return "".join(out)


def _split_fields(line: str) -> list[str]:
    fields: list[str] = []
    start = 0
    for match in _FIELD_SPLIT.finditer(line):
        # Group 1 holds escaped backslashes that belong to the field
        end = match.end(1)
        fields.append(line[start:end])
        start = match.end()
    fields.append(line[start:])
    return fields


def format_outcome(outcome: Outcome) -> str:
    last = outcome.dest_id if outcome.status is OutcomeStatus.MIGRATED and outcome.dest_id else outcome.detail
    fields = [outcome.status.log_token, outcome.name, outcome.source_id, last]
    return "|".join(_escape(field) for field in fields)


def parse_outcome(line: str) -> Outcome:
    fields = _split_fields(line)
    if len(fields) != 4:
        msg = f"Malformed migration log line: {line!r}"
        raise MigrationError(msg)
    token, name, source_id, last = (_unescape(field) for field in fields)
    try:
        status = OutcomeStatus.from_log_token(token)
    except ValueError as e:
        raise MigrationError(str(e)) from e
    if status is OutcomeStatus.MIGRATED:
        return Outcome(name=name, source_id=source_id, status=status, detail=migrated_detail(last), dest_id=last)
    return Outcome(name=name, source_id=source_id, status=status, detail=last)


class OutcomeLog:
    """Writes outcomes to the run's migration log as they are produced."""

    path: Path

    def __init__(self, path: Path) -> None:
        self.path = path
        # Create (or truncate) so an empty run still leaves an empty log
        _ = self.path.write_text("", encoding="utf-8")

    def append(self, outcome: Outcome) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            _ = f.write(format_outcome(outcome) + "\n")


def read_outcome_log(path: Path) -> list[Outcome]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Cannot read migration log {path}: {e}"
        raise MigrationError(msg) from e
    return [parse_outcome(line) for line in text.split("\n") if line]


def write_outcome_log(path: Path, outcomes: Iterable[Outcome]) -> None:
    _ = path.write_text("".join(format_outcome(outcome) + "\n" for outcome in outcomes), encoding="utf-8")
