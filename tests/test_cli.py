"""
Tests for CLI module.
"""

import logging
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from conftest import make_snapshot

from jira_component_migrator.cli import EXIT_INTERRUPTED, main, parse_arguments
from jira_component_migrator.config import MigrationConfig
from jira_component_migrator.exceptions import PreconditionError
from jira_component_migrator.models import Outcome, OutcomeStatus, Phase, RunMetadata
from jira_component_migrator.reporter import build_report
from jira_component_migrator.utils import setup_logging


@pytest.mark.unit
class TestSetupLogging:
    """Test setup_logging verbosity levels."""

    @pytest.fixture(autouse=True)
    def _isolated_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)

    def _get_console_handler(self, root_logger: logging.Logger) -> logging.StreamHandler[Any]:
        console_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        ]
        assert console_handlers, "Expected at least one console StreamHandler"
        return console_handlers[0]

    @pytest.mark.parametrize(
        ("verbosity", "level"),
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG)],
    )
    def test_console_level_follows_verbosity(self, verbosity: int, level: int) -> None:
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        root_logger.handlers.clear()

        try:
            setup_logging(verbosity=verbosity)
            assert self._get_console_handler(root_logger).level == level
        finally:
            for h in root_logger.handlers:
                h.close()
            root_logger.handlers = original_handlers

    def test_log_file_always_gets_debug(self, tmp_path: Path) -> None:
        root_logger = logging.getLogger()
        original_handlers = root_logger.handlers[:]
        root_logger.handlers.clear()

        try:
            setup_logging(verbosity=0)
            file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
            assert [h.level for h in file_handlers] == [logging.DEBUG]
            assert (tmp_path / "migration.log").exists()
        finally:
            for h in root_logger.handlers:
                h.close()
            root_logger.handlers = original_handlers


@pytest.mark.unit
class TestParseArguments:
    def test_boolean_flags_default_to_none(self) -> None:
        """Unset flags must not override the config file or environment."""
        args = parse_arguments([])
        assert args.dry_run is None
        assert args.force_confirm is None
        assert args.skip_backup is None
        assert args.verbose == 0

    def test_short_flags(self) -> None:
        args = parse_arguments(["-d", "-f", "-s", "-u", "https://jira.example.com", "-t", "tok", "-vv"])
        assert args.dry_run is True
        assert args.force_confirm is True
        assert args.skip_backup is True
        assert args.jira_url == "https://jira.example.com"
        assert args.token == "tok"
        assert args.verbose == 2

    def test_auto_confirm_alias(self) -> None:
        assert parse_arguments(["--auto-confirm"]).force_confirm is True


def _summary(tmp_path: Path, *, dry_run: bool = False, interrupted: bool = False) -> MagicMock:
    metadata = RunMetadata("20250131_142501", "https://jira.example.com", "SRC", "DST", dry_run=dry_run)
    if dry_run:
        outcomes = [Outcome("UI", "2", OutcomeStatus.DRY_RUN, "Would be migrated to DST")]
    else:
        outcomes = [Outcome("UI", "2", OutcomeStatus.MIGRATED, "Created component (New ID: 501)", dest_id="501")]
    report = build_report(metadata, None, make_snapshot("DST", Phase.DEST_BEFORE), None, outcomes)
    summary = MagicMock()
    summary.report = report
    summary.run_dir = tmp_path / "jira_migration_20250131_142501"
    summary.interrupted = interrupted
    return summary


@pytest.mark.unit
class TestMain:
    """Test exit codes and flag forwarding of main()."""

    def _run_main(
        self, argv: list[str], config: MigrationConfig, summary: MagicMock | None = None, **patches: Any
    ) -> tuple[int | str | None, MagicMock, MagicMock]:
        with (
            patch("jira_component_migrator.cli.setup_logging"),
            patch("jira_component_migrator.cli.load_config", return_value=config) as mock_load,
            patch("jira_component_migrator.cli.ComponentMigrator") as mock_migrator,
            patch("builtins.input", **patches),
        ):
            if summary is not None:
                mock_migrator.return_value.migrate.return_value = summary
            with pytest.raises(SystemExit) as exc_info:
                main(argv)
        return exc_info.value.code, mock_load, mock_migrator

    def test_dry_run_exits_zero_without_prompt(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST", dry_run=True)

        code, _, mock_migrator = self._run_main(
            ["--dry-run"], config, _summary(tmp_path, dry_run=True), side_effect=AssertionError("prompted")
        )

        assert code == 0
        mock_migrator.return_value.migrate.assert_called_once()
        assert "This was a DRY RUN" in capsys.readouterr().out

    def test_flags_forwarded_as_overrides(self, tmp_path: Path) -> None:
        config = MigrationConfig(token="t", source_project="A", dest_project="B", dry_run=True)

        _, mock_load, _ = self._run_main(
            ["-c", "prod.conf", "--source", "A", "--dest", "B", "--delay", "0.5", "-o", str(tmp_path), "-d"],
            config,
            _summary(tmp_path, dry_run=True),
        )

        _, kwargs = mock_load.call_args
        assert kwargs["config_file"] == "prod.conf"
        overrides = kwargs["overrides"]
        assert overrides["source_project"] == "A"
        assert overrides["dest_project"] == "B"
        assert overrides["rate_limit_delay"] == "0.5"
        assert overrides["output_dir"] == str(tmp_path)
        assert overrides["dry_run"] is True
        assert overrides["force_confirm"] is None

    def test_declined_confirmation_cancels(self, capsys: pytest.CaptureFixture[str]) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST")

        code, _, mock_migrator = self._run_main([], config, return_value="n")

        assert code == 0
        mock_migrator.assert_not_called()
        assert "Migration cancelled" in capsys.readouterr().out

    def test_closed_stdin_cancels(self) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST")

        code, _, mock_migrator = self._run_main([], config, side_effect=EOFError)

        assert code == 0
        mock_migrator.assert_not_called()

    def test_confirmed_live_run(self, tmp_path: Path) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST")

        code, _, mock_migrator = self._run_main([], config, _summary(tmp_path), return_value="yes")

        assert code == 0
        mock_migrator.return_value.migrate.assert_called_once()

    def test_force_skips_prompt(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST", force_confirm=True)

        code, _, _ = self._run_main(["-f"], config, _summary(tmp_path), side_effect=AssertionError("prompted"))

        assert code == 0
        assert "Auto-confirming migration" in capsys.readouterr().out

    def test_interrupted_run_exit_code(self, tmp_path: Path) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST", force_confirm=True)

        code, _, _ = self._run_main([], config, _summary(tmp_path, interrupted=True))

        assert code == EXIT_INTERRUPTED

    def test_interrupt_outside_engine_exits_interrupted(self, capsys: pytest.CaptureFixture[str]) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST", force_confirm=True)

        with (
            patch("jira_component_migrator.cli.setup_logging"),
            patch("jira_component_migrator.cli.load_config", return_value=config),
            patch("jira_component_migrator.cli.ComponentMigrator") as mock_migrator,
        ):
            mock_migrator.return_value.migrate.side_effect = KeyboardInterrupt
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == EXIT_INTERRUPTED
        assert "Interrupted" in capsys.readouterr().err

    def test_interrupt_at_confirmation_prompt(self) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST")

        code, _, mock_migrator = self._run_main([], config, side_effect=KeyboardInterrupt)

        assert code == EXIT_INTERRUPTED
        mock_migrator.assert_not_called()

    def test_migration_error_exits_one(self, capsys: pytest.CaptureFixture[str]) -> None:
        config = MigrationConfig(token="t", source_project="SRC", dest_project="DST", dry_run=True)

        with (
            patch("jira_component_migrator.cli.setup_logging"),
            patch("jira_component_migrator.cli.load_config", return_value=config),
            patch("jira_component_migrator.cli.ComponentMigrator") as mock_migrator,
        ):
            mock_migrator.return_value.migrate.side_effect = PreconditionError("Destination project DST not found")
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 1
        assert "✗ Destination project DST not found" in capsys.readouterr().err

    def test_token_from_pass_path(self, tmp_path: Path) -> None:
        config = MigrationConfig(source_project="SRC", dest_project="DST", dry_run=True)

        with patch("jira_component_migrator.cli.resolve_token_from_pass", return_value="pass-token") as mock_pass:
            code, _, _ = self._run_main(
                ["--token-pass-path", "jira/bot"], config, _summary(tmp_path, dry_run=True)
            )

        assert code == 0
        mock_pass.assert_called_once_with("jira/bot")
        assert config.token == "pass-token"

    def test_regenerate_report(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        report = _summary(tmp_path).report

        with (
            patch("jira_component_migrator.cli.setup_logging"),
            patch("jira_component_migrator.cli.regenerate_report", return_value=report) as mock_regenerate,
            patch("jira_component_migrator.cli.load_config") as mock_load,
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["--regenerate-report", str(tmp_path)])

        assert exc_info.value.code == 0
        mock_regenerate.assert_called_once_with(tmp_path)
        mock_load.assert_not_called()
        assert f"All files saved in: {tmp_path}" in capsys.readouterr().out
