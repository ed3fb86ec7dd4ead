"""
Jira Component Migration Tool

Migrates the components of one Jira project into another, skipping name
conflicts, recording every outcome and producing an id mapping for
follow-up migrations of issues that reference components.
"""

from __future__ import annotations

from .cli import main
from .client import JiraClient
from .config import MigrationConfig, load_config
from .conflicts import detect_conflicts
from .engine import MigrationEngine, OutcomeEvent
from .exceptions import (
    AuthError,
    JiraApiError,
    MigrationError,
    NotFoundError,
    PreconditionError,
    TransportError,
    ValidationError,
)
from .migrator import ComponentMigrator, RunSummary
from .models import Component, MigrationCounts, MigrationResult, Outcome, OutcomeStatus, Phase, Snapshot
from .reporter import build_report, regenerate_report
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AuthError",
    "Component",
    "ComponentMigrator",
    "JiraApiError",
    "JiraClient",
    "MigrationConfig",
    "MigrationCounts",
    "MigrationEngine",
    "MigrationError",
    "MigrationResult",
    "NotFoundError",
    "Outcome",
    "OutcomeEvent",
    "OutcomeStatus",
    "Phase",
    "PreconditionError",
    "RunSummary",
    "Snapshot",
    "TransportError",
    "ValidationError",
    "build_report",
    "detect_conflicts",
    "load_config",
    "main",
    "regenerate_report",
    "setup_logging",
]
