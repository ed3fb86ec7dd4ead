"""
Utility functions for the Jira component migration tool.
"""

from __future__ import annotations

import logging
import re
import subprocess
from subprocess import CompletedProcess

_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class PassError(Exception):
    """Raised when the pass store cannot provide a secret."""


def setup_logging(*, verbosity: int = 0, log_file: str = "migration.log") -> None:
    """Configure logging for the migration process.

    The console shows warnings by default, info with ``-v`` and debug with
    ``-vv``. The log file always receives debug output.
    """
    if verbosity <= 0:
        console_level = logging.WARNING
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.DEBUG

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    file_handler = logging.FileHandler(log_file, mode="a")
    file_handler.setLevel(logging.DEBUG)

    logging.basicConfig(
        level=logging.DEBUG,
        format=_LOG_FORMAT,
        handlers=[console_handler, file_handler],
        force=True,
    )
    # urllib3 logs full request lines at debug level
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def redact(text: str, secrets: list[str | None]) -> str:
    """Replace every secret occurring in ``text`` by ``***TOKEN***``."""
    result = text
    for secret in secrets:
        if secret:
            result = result.replace(secret, "***TOKEN***")
    return result


def _validate_pass_path(pass_path: str) -> None:
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)


def get_pass_value(pass_path: str) -> str:
    """Read a secret (the first line of a ``pass`` entry) from the password store.

    The GPG agent must already be unlocked; a locked key is reported as a
    PassError rather than prompted for.
    """
    _validate_pass_path(pass_path)

    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", "show", pass_path], capture_output=True, text=True, check=True
        )
    except FileNotFoundError as e:
        msg = "The 'pass' utility is not installed"
        raise PassError(msg) from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.strip()
        hint = ""
        if "decryption failed" in stderr:
            hint = " (unlock the GPG key first, e.g. by running pass show in a terminal)"
        msg = f"pass entry '{pass_path}' could not be read (exit {e.returncode}): {stderr}{hint}"
        raise PassError(msg) from e

    lines = result.stdout.splitlines()
    secret = lines[0].strip() if lines else ""
    if not secret:
        msg = f"pass entry '{pass_path}' is empty"
        raise PassError(msg)
    return secret
