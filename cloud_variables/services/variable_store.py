"""
Variable store: every variable operation for an authenticated tenant.

A variable is two records, the JSON document in the blob store and its metadata row in the
ledger, written in a fixed order so a failure leaves at most an unreferenced blob, never a ledger
row without its blob:

- create: blob first, then ledger row
- delete: ledger row first, then blob (best effort)

Unreferenced blobs are picked up by services.reconciliation.
"""
import logging
from typing import Any, List, Optional, Tuple

from cloud_variables.core.errors import BlobNotFoundError, ConflictError, NotFoundError, ValidationError
from cloud_variables.core.quota import enforce_variable_limit, is_within_size_limit, size_in_mb
from cloud_variables.models.tier import Tier
from cloud_variables.models.variable import Variable
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.usage_tracker import UsageTracker
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.storage.base import BlobStore
from cloud_variables.utils.auth import TokenClaims
from cloud_variables.utils.pagination import normalize_pagination
from cloud_variables.utils.validation import calculate_json_size, validate_tags, validate_variable_key

logger = logging.getLogger(__name__)

# Distinguishes "no new document" from a JSON null document on update
UNSET: Any = object()


class VariableStore:
    def __init__(
        self,
        ledger: VariableLedger,
        tiers: TierService,
        blob_store: BlobStore,
        usage: Optional[UsageTracker] = None,
    ):
        self.ledger = ledger
        self.tiers = tiers
        self.blob_store = blob_store
        self.usage = usage

    def _record_usage(self, user_id: int, **counters: int) -> None:
        if self.usage is None:
            return
        try:
            self.usage.record(user_id, **counters)
        except Exception as e:
            # Don't fail the operation if the usage counter update fails
            logger.warning("Usage counters not updated for user id=%s: %s", user_id, e)
            # A failed flush leaves the shared session unusable until rolled back
            self.usage.db.rollback()

    def _check_size(self, document: Any, tier: Tier) -> int:
        size_bytes = calculate_json_size(document)
        if not is_within_size_limit(size_in_mb(size_bytes), tier):
            raise ValidationError(
                f"Variable size exceeds the maximum of {tier.max_variable_size_mb} MB for your tier"
            )
        return size_bytes

    def _load(self, variable: Variable) -> Any:
        try:
            return self.blob_store.retrieve(variable.storage_path)
        except BlobNotFoundError:
            logger.warning(
                "Ledger row id=%s for user id=%s has no blob", variable.id, variable.user_id
            )
            raise

    def _get_owned(self, user_id: int, variable_id: int) -> Variable:
        variable = self.ledger.find_by_id(variable_id, user_id)
        if variable is None:
            raise NotFoundError("Variable not found")
        return variable

    def create(
        self,
        claims: TokenClaims,
        key: str,
        document: Any,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
        is_encrypted: bool = False,
    ) -> Tuple[Variable, Any]:
        user_id = claims.user_id
        validate_variable_key(key)
        validate_tags(tags)

        tier = self.tiers.get(claims.tier)
        enforce_variable_limit(self.ledger.count_by_user(user_id), tier)

        # Advisory only; the ledger's unique constraint decides concurrent creates
        if self.ledger.find_by_key(key, user_id) is not None:
            raise ConflictError(f"Variable with key '{key}' already exists")

        size_bytes = self._check_size(document, tier)

        storage_path = self.blob_store.store(user_id, key, document)
        variable = self.ledger.insert(
            user_id=user_id,
            key=key,
            description=description,
            size_bytes=size_bytes,
            storage_path=storage_path,
            is_encrypted=is_encrypted,
            tags=tags,
        )
        logger.info("Created variable id=%s for user id=%s", variable.id, user_id)
        self._record_usage(user_id, variables_created=1, total_bytes_stored=size_bytes)
        return variable, document

    def get(self, claims: TokenClaims, variable_id: int) -> Tuple[Variable, Any]:
        variable = self._get_owned(claims.user_id, variable_id)
        document = self._load(variable)
        self._record_usage(
            claims.user_id, variables_read=1, total_bytes_transferred=variable.size_bytes
        )
        return variable, document

    def list(
        self,
        claims: TokenClaims,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Variable], int, int, int]:
        """
        Returns:
            (rows, total, page, page_size) with page and page_size as actually applied
        """
        page, page_size = normalize_pagination(page, page_size)
        rows, total = self.ledger.list(claims.user_id, page, page_size, search or None)
        return rows, total, page, page_size

    def update(
        self,
        claims: TokenClaims,
        variable_id: int,
        document: Any = UNSET,
        description: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Tuple[Variable, Any]:
        """
        Replace any of document, description and tags. Omitted fields are left alone; the
        version is bumped on every call, including a metadata-only change.
        """
        user_id = claims.user_id
        variable = self._get_owned(user_id, variable_id)
        validate_tags(tags)

        size_bytes = None
        if document is UNSET:
            # Read first so a missing blob fails the request before the version is bumped
            document = self._load(variable)
        else:
            tier = self.tiers.get(claims.tier)
            size_bytes = self._check_size(document, tier)
            self.blob_store.update(variable.storage_path, document)

        variable = self.ledger.update(
            variable_id,
            user_id,
            description=description,
            size_bytes=size_bytes,
            tags=tags,
        )

        self._record_usage(user_id, variables_updated=1, total_bytes_stored=size_bytes or 0)
        return variable, document

    def delete(self, claims: TokenClaims, variable_id: int) -> None:
        user_id = claims.user_id
        variable = self.ledger.delete(variable_id, user_id)
        storage_path = variable.storage_path
        try:
            self.blob_store.delete(storage_path)
        except Exception as e:
            logger.warning(
                "Blob for deleted variable id=%s not removed, left for reconciliation: %s",
                variable_id, e,
            )
        logger.info("Deleted variable id=%s for user id=%s", variable_id, user_id)
        self._record_usage(user_id, variables_deleted=1)
