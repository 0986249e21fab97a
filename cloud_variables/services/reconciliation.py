"""
Out-of-band sweep for blobs no ledger row points at.

Such blobs come from creates that lost a uniqueness race or failed after the blob write, and from
blob deletes that failed after the ledger row was removed. The sweep is never run on the request
path. A create in flight can look orphaned while its ledger row is uncommitted, so the sweep
defaults to reporting and should be applied when writes are quiet.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from cloud_variables.storage.base import BlobStore

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    dry_run: bool
    scanned: int = 0
    orphaned: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def reconcile_orphans(ledger_paths: Iterable[str], blob_store: BlobStore, dry_run: bool = True) -> ReconciliationReport:
    referenced = set(ledger_paths)
    report = ReconciliationReport(dry_run=dry_run)

    for storage_path in blob_store.iter_storage_paths():
        report.scanned += 1
        if storage_path in referenced:
            continue
        report.orphaned.append(storage_path)
        if dry_run:
            continue
        try:
            blob_store.delete(storage_path)
            report.deleted.append(storage_path)
        except Exception as e:
            logger.warning("Could not delete orphaned blob %s: %s", storage_path, e)
            report.failed.append(storage_path)

    logger.info(
        "Reconciliation %s: scanned=%d orphaned=%d deleted=%d failed=%d",
        "dry run" if dry_run else "applied",
        report.scanned, len(report.orphaned), len(report.deleted), len(report.failed),
    )
    return report
