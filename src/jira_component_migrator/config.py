"""
Configuration loading for the Jira component migration tool.

Settings are layered, later layers winning:

1. built-in defaults
2. the configuration file (``KEY=VALUE`` lines, ``.jira-migration.conf`` by default)
3. environment variables with the same keys
4. command-line flags
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from dotenv import dotenv_values

from . import utils
from .exceptions import PreconditionError

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE: Final[str] = ".jira-migration.conf"
DEFAULT_JIRA_URL: Final[str] = "https://issues.redhat.com"
DEFAULT_RATE_LIMIT_DELAY: Final[float] = 2.0

# Keys recognised in the config file and the environment, mapped to MigrationConfig fields
CONFIG_KEYS: Final[dict[str, str]] = {
    "JIRA_URL": "jira_url",
    "BOT_TOKEN": "token",
    "SOURCE_PROJECT": "source_project",
    "DEST_PROJECT": "dest_project",
    "RATE_LIMIT_DELAY": "rate_limit_delay",
    "FORCE_CONFIRM": "force_confirm",
}

_TRUE_VALUES = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "n", "off", ""})


@dataclass
class MigrationConfig:
    """Resolved settings for one run."""

    jira_url: str = DEFAULT_JIRA_URL
    token: str | None = field(default=None, repr=False)
    source_project: str | None = None
    dest_project: str | None = None
    rate_limit_delay: float = DEFAULT_RATE_LIMIT_DELAY
    dry_run: bool = False
    force_confirm: bool = False
    skip_backup: bool = False
    output_dir: Path = field(default_factory=Path)

    def validate(self) -> None:
        """Check that the run can start; raises PreconditionError otherwise."""
        missing = [
            key
            for key, value in (("SOURCE_PROJECT", self.source_project), ("DEST_PROJECT", self.dest_project))
            if not value
        ]
        if missing:
            msg = f"Missing required setting(s): {', '.join(missing)}"
            raise PreconditionError(msg)
        if not self.jira_url.startswith(("https://", "http://")):
            msg = f"Invalid JIRA_URL (expected http:// or https://): {self.jira_url}"
            raise PreconditionError(msg)
        if not self.token:
            msg = (
                "Bearer token is required. Provide it with --token, the BOT_TOKEN environment variable, "
                f"BOT_TOKEN in {DEFAULT_CONFIG_FILE} or --token-pass-path. "
                f"Personal Access Tokens can be created at {self.jira_url}/secure/ViewProfile.jspa"
            )
            raise PreconditionError(msg)


def parse_bool(value: str | bool, key: str) -> bool:
    if isinstance(value, bool):
        return value
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    msg = f"Invalid boolean for {key}: {value!r}"
    raise PreconditionError(msg)


def parse_delay(value: str | float, key: str = "RATE_LIMIT_DELAY") -> float:
    try:
        delay = float(value)
    except ValueError as e:
        msg = f"Invalid number of seconds for {key}: {value!r}"
        raise PreconditionError(msg) from e
    if not math.isfinite(delay):
        msg = f"{key} must be a finite number of seconds: {value!r}"
        raise PreconditionError(msg)
    if delay < 0:
        msg = f"{key} must not be negative: {value!r}"
        raise PreconditionError(msg)
    return delay


def read_config_file(path: Path, *, required: bool = False) -> dict[str, str]:
    """Read recognised keys from a ``KEY=VALUE`` file.

    Comments, blank lines, quoting and surrounding whitespace follow dotenv
    rules. Unknown keys are ignored.
    """
    if not path.is_file():
        if required:
            msg = f"Configuration file not found: {path}"
            raise PreconditionError(msg)
        return {}

    logger.info(f"Loading configuration from {path}")
    values = dotenv_values(path)
    result: dict[str, str] = {}
    for key, value in values.items():
        if key not in CONFIG_KEYS:
            logger.debug(f"Ignoring unknown configuration key {key} in {path}")
            continue
        if value is not None:
            result[key] = value
    return result


def load_config(
    *,
    config_file: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> MigrationConfig:
    """Resolve the run configuration from file, environment and explicit overrides.

    Args:
        config_file: Explicit config file path; a missing explicit file is an error.
            Defaults to ``$CONFIG_FILE`` or ``.jira-migration.conf`` (optional).
        env: Environment mapping, ``os.environ`` by default
        overrides: MigrationConfig field values from the command line; ``None`` values are ignored

    Raises:
        PreconditionError: On unreadable files or invalid values
    """
    env = os.environ if env is None else env
    explicit = config_file is not None or bool(env.get("CONFIG_FILE"))
    path = Path(config_file or env.get("CONFIG_FILE") or DEFAULT_CONFIG_FILE)

    raw: dict[str, object] = {}
    for key, value in read_config_file(path, required=explicit).items():
        raw[CONFIG_KEYS[key]] = value
    for key, field_name in CONFIG_KEYS.items():
        if env.get(key):
            raw[field_name] = env[key]
    for field_name, value in (overrides or {}).items():
        if value is not None:
            raw[field_name] = value

    config = MigrationConfig()
    if "jira_url" in raw:
        config.jira_url = str(raw["jira_url"]).rstrip("/")
    if "token" in raw:
        config.token = str(raw["token"])
    if "source_project" in raw:
        config.source_project = str(raw["source_project"])
    if "dest_project" in raw:
        config.dest_project = str(raw["dest_project"])
    if "rate_limit_delay" in raw:
        config.rate_limit_delay = parse_delay(raw["rate_limit_delay"])  # pyright: ignore[reportArgumentType]
    if "force_confirm" in raw:
        config.force_confirm = parse_bool(raw["force_confirm"], "FORCE_CONFIRM")  # pyright: ignore[reportArgumentType]
    if "dry_run" in raw:
        config.dry_run = bool(raw["dry_run"])
    if "skip_backup" in raw:
        config.skip_backup = bool(raw["skip_backup"])
    if "output_dir" in raw:
        config.output_dir = Path(str(raw["output_dir"]))
    return config


def resolve_token_from_pass(pass_path: str) -> str:
    """Read the bearer token from the ``pass`` password store."""
    try:
        return utils.get_pass_value(pass_path)
    except (utils.PassError, ValueError) as e:
        msg = f"Could not read token from pass path '{pass_path}': {e}"
        raise PreconditionError(msg) from e
