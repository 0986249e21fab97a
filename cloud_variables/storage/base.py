"""Blob store contract for variable documents, independent of any metadata."""
import hashlib
from abc import ABC, abstractmethod
from typing import Any, Iterator

BLOB_SUFFIX = ".json"
MAX_FILENAME_BYTES = 255


class BlobStore(ABC):
    """
    Key -> JSON document storage scoped by tenant.

    Storage paths are derived from (tenant_id, key) but callers must treat them as opaque and
    only hand back what store() returned.
    """

    @staticmethod
    def storage_path_for(tenant_id: Any, key: str) -> str:
        filename = f"{key}{BLOB_SUFFIX}"
        if len(filename.encode("utf-8")) > MAX_FILENAME_BYTES:
            # Keys never contain "~", so a hashed name cannot collide with a literal key
            digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
            filename = f"~{digest}{BLOB_SUFFIX}"
        return f"{tenant_id}/{filename}"

    def init(self) -> None:
        """Prepare the backend (create directories, open connections). Called once at startup."""

    @abstractmethod
    def store(self, tenant_id: Any, key: str, document: Any) -> str:
        """Write the document, creating the tenant namespace if needed; return its storage path."""

    @abstractmethod
    def retrieve(self, storage_path: str) -> Any:
        """Read a document. Raises BlobNotFoundError if nothing is stored at the path."""

    @abstractmethod
    def update(self, storage_path: str, document: Any) -> None:
        """Overwrite an existing document. Raises BlobNotFoundError if the path does not exist."""

    @abstractmethod
    def delete(self, storage_path: str) -> None:
        """Remove a document. Deleting a missing path is not an error."""

    @abstractmethod
    def exists(self, storage_path: str) -> bool:
        """Whether a document is stored at the path."""

    def iter_storage_paths(self) -> Iterator[str]:
        """Every stored path; used by the out-of-band reconciliation sweep."""
        raise NotImplementedError
