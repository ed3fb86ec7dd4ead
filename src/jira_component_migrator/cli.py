"""
Command-line interface for the Jira component migration tool.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from pathlib import Path

from .config import DEFAULT_CONFIG_FILE, MigrationConfig, load_config, resolve_token_from_pass
from .exceptions import MigrationError
from .migrator import ComponentMigrator
from .progress import ConsoleProgress
from .reporter import MigrationReport, regenerate_report, render_summary
from .utils import setup_logging

logger: logging.Logger = logging.getLogger(__name__)

EXIT_INTERRUPTED = 130


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description=(
            "Migrate Jira components between projects with conflict detection, "
            "snapshots, verification and an id mapping for follow-up migrations."
        ),
        epilog=(
            "Environment variables: JIRA_URL, BOT_TOKEN, SOURCE_PROJECT, DEST_PROJECT, "
            "RATE_LIMIT_DELAY, FORCE_CONFIRM, CONFIG_FILE. Always start with --dry-run."
        ),
    )

    _ = parser.add_argument("-c", "--config", help=f"Configuration file (default: {DEFAULT_CONFIG_FILE})")
    _ = parser.add_argument(
        "-d", "--dry-run", action="store_true", default=None, help="Preview the migration without creating anything"
    )
    _ = parser.add_argument(
        "-f",
        "--force",
        "--auto-confirm",
        dest="force_confirm",
        action="store_true",
        default=None,
        help="Skip the interactive confirmation (for automation)",
    )
    _ = parser.add_argument(
        "-s",
        "--skip-backup",
        action="store_true",
        default=None,
        help="Do not write the source snapshot to the run directory (not recommended)",
    )
    _ = parser.add_argument("-u", "--jira-url", help="Jira instance URL (default: https://issues.redhat.com)")
    _ = parser.add_argument("-t", "--token", help="Bearer token for authentication")
    _ = parser.add_argument("--token-pass-path", help="Read the bearer token from this pass utility path")
    _ = parser.add_argument("--source", dest="source_project", help="Source project key")
    _ = parser.add_argument("--dest", dest="dest_project", help="Destination project key")
    _ = parser.add_argument(
        "--delay", dest="rate_limit_delay", help="Seconds to wait after each create request (default: 2)"
    )
    _ = parser.add_argument(
        "-o", "--output-dir", help="Directory in which the run directory is created (default: current directory)"
    )
    _ = parser.add_argument(
        "--regenerate-report",
        metavar="RUN_DIR",
        help="Re-render the report and mapping of a finished run from its stored files, then exit",
    )
    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console logging (-v info, -vv debug)"
    )

    return parser.parse_args(argv)


def _print_configuration(config: MigrationConfig) -> None:
    print("=========================================")
    print("  JIRA Component Migration Tool")
    print(f"  {config.source_project} → {config.dest_project}")
    print("=========================================")
    print(f"  JIRA URL: {config.jira_url}")
    print(f"  Source Project: {config.source_project}")
    print(f"  Destination Project: {config.dest_project}")
    print(f"  Dry Run: {config.dry_run}")
    print(f"  Rate Limit Delay: {config.rate_limit_delay:g}s")
    print()


def _print_report(report: MigrationReport, run_dir: Path) -> None:
    print()
    print(render_summary(report), end="")
    print()
    print(f"All files saved in: {run_dir}")
    if report.metadata.dry_run:
        print("This was a DRY RUN - no actual changes were made")


def _confirm(prompt: str) -> bool:
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _resolve_token(config: MigrationConfig, pass_path: str | None) -> None:
    if config.token:
        return
    if pass_path:
        config.token = resolve_token_from_pass(pass_path)
    elif sys.stdin.isatty():
        config.token = getpass.getpass("Bearer Token: ") or None


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbosity: int = args.verbose
    setup_logging(verbosity=verbosity)

    try:
        if args.regenerate_report:
            run_dir = Path(args.regenerate_report)
            _print_report(regenerate_report(run_dir), run_dir)
            sys.exit(0)

        config = load_config(
            config_file=args.config,
            overrides={
                "jira_url": args.jira_url,
                "token": args.token,
                "source_project": args.source_project,
                "dest_project": args.dest_project,
                "rate_limit_delay": args.rate_limit_delay,
                "dry_run": args.dry_run,
                "force_confirm": args.force_confirm,
                "skip_backup": args.skip_backup,
                "output_dir": args.output_dir,
            },
        )
        _resolve_token(config, args.token_pass_path)
        _print_configuration(config)

        if not config.dry_run:
            if config.force_confirm:
                print("Auto-confirming migration (--force flag used)")
            elif not _confirm("Continue with migration? [y/N] "):
                print("Migration cancelled")
                sys.exit(0)

        migrator = ComponentMigrator(config, observers=[ConsoleProgress()])
        summary = migrator.migrate()
        _print_report(summary.report, summary.run_dir)

        if summary.interrupted:
            print("Migration interrupted; re-run to process the remaining components", file=sys.stderr)
            sys.exit(EXIT_INTERRUPTED)
        sys.exit(0)

    except MigrationError as e:
        logger.debug("Migration failed", exc_info=True)
        print(f"✗ {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        # Outside the per-component loop; files already in the run directory are kept
        logger.warning("Interrupted by user")
        print("\n✗ Interrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
