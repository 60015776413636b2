"""Maintenance CLI for the security control tracker.

Usage::

    python -m app.cli migrate
    python -m app.cli seed [--force]
    python -m app.cli export [--output PATH]
    python -m app.cli import FILE [--yes]
    python -m app.cli wipe [--yes]
    python -m app.cli status [--url URL]

Commands work directly against the configured database, except ``status``
which checks a running API over HTTP.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import requests

from app.core.config import settings
from app.core.database import Base, SessionLocal, engine
from app.core.exceptions import TrackerError
from app.core.migrations import run_migrations
from app.services.backup_service import BackupService
from app.services.demo_seeder import seed_demo_data

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="app.cli",
        description="Maintenance commands for the security control tracker database.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply Alembic migrations up to head.")

    seed = subparsers.add_parser("seed", help="Load demo environments and controls.")
    seed.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Wipe existing data and reseed even if controls exist.",
    )

    export = subparsers.add_parser("export", help="Write a JSON dump of every table.")
    export.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file (default: EXPORT_DIR/security-tracker-export-YYYY-MM-DD.json).",
    )

    import_ = subparsers.add_parser("import", help="Replace all data with a JSON dump.")
    import_.add_argument("file", type=Path, help="Export file to load.")
    import_.add_argument("--yes", action="store_true", default=False, help="Skip the confirmation prompt.")

    wipe = subparsers.add_parser("wipe", help="Delete every row from every table.")
    wipe.add_argument("--yes", action="store_true", default=False, help="Skip the confirmation prompt.")

    status = subparsers.add_parser("status", help="Check a running API.")
    status.add_argument("--url", default=DEFAULT_API_URL, help=f"API base URL (default: {DEFAULT_API_URL}).")

    return parser.parse_args(argv)


def _confirm(prompt: str, assume_yes: bool, input_func: Callable[[str], str] = input) -> bool:
    """Return True when --yes was given or the user types "yes"."""
    if assume_yes:
        return True
    answer = input_func(f"{prompt} Type 'yes' to continue: ")
    return answer.strip().lower() == "yes"


def _print_counts(title: str, counts: dict) -> None:
    print(f"\n{title}")
    print("-" * 60)
    for table, count in counts.items():
        print(f"  {table:<30} {count}")
    print()


def cmd_migrate(args: argparse.Namespace) -> int:
    run_migrations()
    print("Database is at the latest migration.")
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        summary = seed_demo_data(db, force=args.force)
    finally:
        db.close()
    if not summary:
        print("Security controls already exist; nothing seeded (use --force to reseed).")
        return 0
    _print_counts("Seeded demo data", summary)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    db = SessionLocal()
    try:
        path = BackupService(db).export_to_file(args.output)
    finally:
        db.close()
    print(f"Exported database to {path}")
    return 0


def cmd_import(args: argparse.Namespace, input_func: Callable[[str], str] = input) -> int:
    if not args.file.exists():
        print(f"Export file not found: {args.file}", file=sys.stderr)
        return 1
    if not _confirm("This replaces ALL existing data.", args.yes, input_func):
        print("Import cancelled.")
        return 1
    db = SessionLocal()
    try:
        imported = BackupService(db).import_from_file(args.file)
    finally:
        db.close()
    _print_counts(f"Imported {args.file}", imported)
    return 0


def cmd_wipe(args: argparse.Namespace, input_func: Callable[[str], str] = input) -> int:
    if not _confirm("This deletes ALL data.", args.yes, input_func):
        print("Wipe cancelled.")
        return 1
    db = SessionLocal()
    try:
        removed = BackupService(db).wipe()
    finally:
        db.close()
    _print_counts("Deleted rows", removed)
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    base_url = args.url.rstrip("/")
    try:
        health = requests.get(f"{base_url}/api/health", timeout=10)
        health.raise_for_status()
        matrix = requests.get(f"{base_url}/api/matrix", timeout=10)
        matrix.raise_for_status()
    except requests.exceptions.RequestException as e:
        print(f"API at {base_url} is not healthy: {e}", file=sys.stderr)
        return 1

    data = matrix.json()
    print(f"API at {base_url} is healthy ({health.json().get('environment')})")
    print(f"  Environments: {len(data.get('environments', []))}")
    print(f"  Controls:     {len(data.get('controls', []))}")
    return 0


COMMANDS = {
    "migrate": cmd_migrate,
    "seed": cmd_seed,
    "export": cmd_export,
    "import": cmd_import,
    "wipe": cmd_wipe,
    "status": cmd_status,
}


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug(f"Using database {settings.sqlalchemy_database_uri}")

    try:
        exit_code = COMMANDS[args.command](args)
    except TrackerError as e:
        print(f"{e.error_type}: {e.message}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
