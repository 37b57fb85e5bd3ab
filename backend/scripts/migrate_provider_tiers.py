#!/usr/bin/env python3
"""
migrate_provider_tiers.py: thin CLI wrapper for TierMigrationService.

Assigns a tier to every provider that has never been evaluated. Re-running is
safe: providers that already carry a tier are skipped. Use --dry-run to see the
tiers that would be assigned without writing anything, and --status to print
the current migration progress only.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(BACKEND_DIR / ".env")

logger = logging.getLogger("migrate_provider_tiers")


def _import_dependencies():
    from servicehub.database import SessionLocal
    from servicehub.services.tier_migration_service import TierMigrationService

    return SessionLocal, TierMigrationService


def _positive_int(value: str) -> int:
    try:
        ivalue = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected integer, got {value!r}") from exc
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("Value must be greater than zero")
    return ivalue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Backfill tiers for providers without one.")
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        default=False,
        help="Evaluate tiers without persisting them.",
    )
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=_positive_int,
        default=None,
        help="Providers per batch (default: MIGRATION_BATCH_SIZE setting).",
    )
    parser.add_argument(
        "--status",
        dest="status_only",
        action="store_true",
        default=False,
        help="Print migration progress and exit.",
    )
    return parser


def run(args) -> Dict[str, Any]:
    SessionLocal, TierMigrationService = _import_dependencies()
    session = SessionLocal()
    try:
        service = TierMigrationService(session)
        if args.status_only:
            return service.migration_status()
        result = service.migrate_legacy_providers(
            dry_run=args.dry_run, batch_size=args.batch_size
        )
    finally:
        session.close()

    for error in result["errors"]:
        logger.warning("Provider %s not migrated: %s", error["providerId"], error["error"])
    return result


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        summary = run(args)
    except Exception as exc:  # pragma: no cover
        logger.exception("Provider tier migration failed: %s", exc)
        return 1

    print(json.dumps(summary, default=str))
    if args.status_only:
        return 0
    return 0 if not summary["errors"] else 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
