from cloud_variables.storage.base import BlobStore
from cloud_variables.storage.file_storage import FileBlobStore
from cloud_variables.storage.memory import InMemoryBlobStore


def build_blob_store(settings) -> BlobStore:
    if settings.storage_backend == "memory":
        return InMemoryBlobStore()
    if settings.storage_backend == "file":
        return FileBlobStore(settings.storage_path)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.storage_backend!r}")


__all__ = ["BlobStore", "FileBlobStore", "InMemoryBlobStore", "build_blob_store"]
