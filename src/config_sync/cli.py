#!/usr/bin/env python3
"""
CLI for config import/export operations.

Usage:
    config-sync import [--type core-store] [--name plugin_i18n] [--dry-run] [--json]
    config-sync export [--type core-store] [--name plugin_i18n] [--json]
    config-sync diff   [--type core-store] [--json]

Configuration is read from --config (YAML) or CONFIG_SYNC_CONFIG, with
environment overrides; a .env file in the working directory is loaded first.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config.config_loader import SyncConfig
from .core.exceptions import ConfigSyncError
from .core.logging import configure_logging
from .core.models import SyncReport
from .diff import summarize
from .providers import create_providers
from .sync_engine import SyncEngine


logger = logging.getLogger(__name__)


def load_config(args) -> SyncConfig:
    """Load configuration from --config or CONFIG_SYNC_CONFIG."""
    config_path = args.config or os.environ.get("CONFIG_SYNC_CONFIG")
    return SyncConfig(Path(config_path) if config_path else None)


def print_report(report: SyncReport, as_json: bool) -> int:
    """Print a report and return the exit code."""
    print(report.summary())
    if as_json:
        print("\n" + json.dumps(report.to_dict(), indent=2))
    return 0 if not report.failed else 1


async def run_import(engine: SyncEngine, args) -> SyncReport:
    if args.name:
        return await engine.import_single(args.type, args.name)
    return await engine.import_all(config_type=args.type, dry_run=args.dry_run)


async def run_export(engine: SyncEngine, args) -> SyncReport:
    if args.name:
        return await engine.export_single(args.type, args.name)
    return await engine.export_all(config_type=args.type)


def cmd_import(engine: SyncEngine, args) -> int:
    """Import config files into the database."""
    return print_report(asyncio.run(run_import(engine, args)), args.json)


def cmd_export(engine: SyncEngine, args) -> int:
    """Export database config to files."""
    return print_report(asyncio.run(run_export(engine, args)), args.json)


def cmd_diff(engine: SyncEngine, args) -> int:
    """Show what an import would change."""
    try:
        changes = asyncio.run(engine.diff(args.type))
    except ConfigSyncError as e:
        logger.error(f"Failed to compute diff: {e}")
        return 1

    if args.json:
        print(json.dumps({key: change.to_dict() for key, change in sorted(changes.items())}, indent=2))
        return 0

    if not changes:
        print("No differences between config files and database.")
        return 0

    for key, change in sorted(changes.items()):
        print(f"  {change.change_type.value:<8} {key}")
    counts = summarize(changes)
    print(
        f"\n  Created: {counts['created']}  Updated: {counts['updated']}  "
        f"Deleted: {counts['deleted']}"
    )
    return 0


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Config sync between database and JSON files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--log-json", action="store_true", help="Emit JSON-structured logs")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    import_parser = subparsers.add_parser("import", help="Import config files into the database")
    import_parser.add_argument("--type", help="Only import this config type")
    import_parser.add_argument("--name", help="Import a single config (requires --type)")
    import_parser.add_argument("--dry-run", action="store_true", help="Report without making changes")
    import_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    export_parser = subparsers.add_parser("export", help="Export database config to files")
    export_parser.add_argument("--type", help="Only export this config type")
    export_parser.add_argument("--name", help="Export a single config (requires --type)")
    export_parser.add_argument("--json", action="store_true", help="Output report as JSON")

    diff_parser = subparsers.add_parser("diff", help="Show differences between files and database")
    diff_parser.add_argument("--type", help="Only compare this config type")
    diff_parser.add_argument("--json", action="store_true", help="Output changes as JSON")

    args = parser.parse_args(argv)
    if getattr(args, "name", None) and not args.type:
        parser.error("--name requires --type")
    return args


def main(argv=None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        structured=args.log_json,
    )

    commands = {
        "import": cmd_import,
        "export": cmd_export,
        "diff": cmd_diff,
    }
    command = commands.get(args.command)
    if command is None:
        print("No command specified. Use --help for usage.", file=sys.stderr)
        return 1

    try:
        config = load_config(args)
        policy = config.build_policy()
        providers, database = create_providers(config, policy)
    except Exception as e:
        logger.error(f"Failed to initialize config sync: {e}")
        return 1

    try:
        engine = SyncEngine(policy=policy, providers=providers)
        return command(engine, args)
    finally:
        database.close()


if __name__ == "__main__":
    sys.exit(main())
