"""
Filesystem blob store: one directory per tenant, one canonical JSON file per variable key.
"""
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Iterator

from cloud_variables.core.errors import BlobNotFoundError, UnavailableError, ValidationError
from cloud_variables.storage.base import BLOB_SUFFIX, BlobStore
from cloud_variables.utils.validation import canonical_json

logger = logging.getLogger(__name__)

_NOT_FOUND_MESSAGE = "Variable data not found"
_UNAVAILABLE_MESSAGE = "Variable storage temporarily unavailable"
_TEMP_SUFFIX = ".tmp"


class FileBlobStore(BlobStore):
    def __init__(self, base_path):
        self.base_path = Path(base_path).resolve()

    def init(self) -> None:
        """Create the storage root if it does not exist."""
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, storage_path: str) -> Path:
        if not storage_path or os.path.isabs(storage_path):
            raise ValidationError("Invalid storage path")
        full_path = (self.base_path / storage_path).resolve()
        if not full_path.is_relative_to(self.base_path) or full_path == self.base_path:
            raise ValidationError("Invalid storage path")
        return full_path

    def _write(self, target: Path, document: Any) -> None:
        text = canonical_json(document)
        # Write to a sibling temp file then rename so readers never see a partial document.
        # The temp name does not depend on the key and never ends in BLOB_SUFFIX.
        tmp_path = target.with_name(f".{uuid.uuid4().hex}{_TEMP_SUFFIX}")
        try:
            tmp_path.write_text(text, encoding="utf-8")
            os.replace(tmp_path, target)
        except OSError as e:
            logger.exception("Blob write failed: %s", e)
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove temp blob file %s", tmp_path.name)
            raise UnavailableError(_UNAVAILABLE_MESSAGE) from e

    def store(self, tenant_id: Any, key: str, document: Any) -> str:
        storage_path = self.storage_path_for(tenant_id, key)
        target = self._resolve(storage_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.exception("Could not create tenant namespace: %s", e)
            raise UnavailableError(_UNAVAILABLE_MESSAGE) from e
        self._write(target, document)
        return storage_path

    def retrieve(self, storage_path: str) -> Any:
        target = self._resolve(storage_path)
        try:
            text = target.read_text(encoding="utf-8")
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            raise BlobNotFoundError(_NOT_FOUND_MESSAGE)
        except OSError as e:
            logger.exception("Blob read failed: %s", e)
            raise UnavailableError(_UNAVAILABLE_MESSAGE) from e
        try:
            return json.loads(text)
        except ValueError as e:
            logger.error("Stored blob is not valid JSON (%s)", storage_path)
            raise UnavailableError("Variable data is unreadable") from e

    def update(self, storage_path: str, document: Any) -> None:
        target = self._resolve(storage_path)
        if not target.is_file():
            raise BlobNotFoundError(_NOT_FOUND_MESSAGE)
        self._write(target, document)

    def delete(self, storage_path: str) -> None:
        target = self._resolve(storage_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.exception("Blob delete failed: %s", e)
            raise UnavailableError(_UNAVAILABLE_MESSAGE) from e

    def exists(self, storage_path: str) -> bool:
        return self._resolve(storage_path).is_file()

    def iter_storage_paths(self) -> Iterator[str]:
        if not self.base_path.exists():
            return
        for tenant_dir in sorted(self.base_path.iterdir()):
            if not tenant_dir.is_dir():
                continue
            for blob in sorted(tenant_dir.glob(f"*{BLOB_SUFFIX}")):
                if not blob.is_file():
                    continue
                yield f"{tenant_dir.name}/{blob.name}"
