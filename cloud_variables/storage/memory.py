import json
import threading
from typing import Any, Dict, Iterator

from cloud_variables.core.errors import BlobNotFoundError
from cloud_variables.storage.base import BlobStore
from cloud_variables.utils.validation import canonical_json


class InMemoryBlobStore(BlobStore):
    """Dict-backed blob store for tests and throwaway deployments. Nothing survives a restart."""

    def __init__(self):
        self._blobs: Dict[str, str] = {}
        self._lock = threading.Lock()

    def store(self, tenant_id: Any, key: str, document: Any) -> str:
        storage_path = self.storage_path_for(tenant_id, key)
        text = canonical_json(document)
        with self._lock:
            self._blobs[storage_path] = text
        return storage_path

    def retrieve(self, storage_path: str) -> Any:
        with self._lock:
            text = self._blobs.get(storage_path)
        if text is None:
            raise BlobNotFoundError("Variable data not found")
        return json.loads(text)

    def update(self, storage_path: str, document: Any) -> None:
        text = canonical_json(document)
        with self._lock:
            if storage_path not in self._blobs:
                raise BlobNotFoundError("Variable data not found")
            self._blobs[storage_path] = text

    def delete(self, storage_path: str) -> None:
        with self._lock:
            self._blobs.pop(storage_path, None)

    def exists(self, storage_path: str) -> bool:
        with self._lock:
            return storage_path in self._blobs

    def iter_storage_paths(self) -> Iterator[str]:
        with self._lock:
            paths = sorted(self._blobs)
        yield from paths
