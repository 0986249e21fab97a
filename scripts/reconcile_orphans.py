#!/usr/bin/env python3
"""
Find blobs in variable storage that no ledger row points at, and optionally delete them.

Orphans are left behind by creates that failed after writing the blob and by blob deletes that
failed after the ledger row was removed. Run when writes are quiet: a create in flight can look
orphaned until its ledger row commits.

Run from project root (reads DATABASE_URL / STORAGE_* from .env):
  python scripts/reconcile_orphans.py            # report only
  python scripts/reconcile_orphans.py --apply    # delete orphans
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from cloud_variables.core.config import Settings
from cloud_variables.db.session import create_db_engine, create_session_factory
from cloud_variables.core.logging_config import configure_logging
from cloud_variables.services.reconciliation import reconcile_orphans
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.storage import build_blob_store


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--apply", action="store_true", help="delete orphaned blobs (default: report only)")
    args = parser.parse_args()

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if settings.storage_backend != "file":
        print(f"ERROR: nothing to reconcile for STORAGE_BACKEND={settings.storage_backend}")
        sys.exit(1)

    engine = create_db_engine(settings.database_url)
    sess = create_session_factory(engine)()
    try:
        ledger_paths = VariableLedger(sess).all_storage_paths()
    finally:
        sess.close()
        engine.dispose()

    report = reconcile_orphans(ledger_paths, build_blob_store(settings), dry_run=not args.apply)

    print(f"Scanned {report.scanned} blobs, {len(report.orphaned)} orphaned.")
    for storage_path in report.orphaned:
        print(f"  {storage_path}")
    if args.apply:
        print(f"Deleted {len(report.deleted)}, failed {len(report.failed)}.")
        if report.failed:
            sys.exit(1)
    elif report.orphaned:
        print("Re-run with --apply to delete them.")


if __name__ == "__main__":
    main()
