from __future__ import annotations

import pytest

from cloud_variables.core.errors import BlobNotFoundError, NotFoundError, UnavailableError, ValidationError
from cloud_variables.storage import FileBlobStore, InMemoryBlobStore, build_blob_store
from cloud_variables.storage.base import BlobStore

DOCUMENT = {"feature_flags": {"beta": True}, "limits": [1, 2, 3], "name": "ünïcode"}


@pytest.fixture(params=["file", "memory"])
def store(request, tmp_path) -> BlobStore:
    if request.param == "file":
        blob_store = FileBlobStore(tmp_path / "blobs")
        blob_store.init()
        return blob_store
    return InMemoryBlobStore()


def test_store_returns_tenant_scoped_path_and_round_trips(store: BlobStore) -> None:
    storage_path = store.store(7, "cfg", DOCUMENT)

    assert storage_path == "7/cfg.json"
    assert store.exists(storage_path)
    assert store.retrieve(storage_path) == DOCUMENT


def test_store_overwrites_silently(store: BlobStore) -> None:
    store.store(7, "cfg", {"v": 1})
    store.store(7, "cfg", {"v": 2})
    assert store.retrieve("7/cfg.json") == {"v": 2}


def test_retrieve_missing_raises_not_found(store: BlobStore) -> None:
    with pytest.raises(BlobNotFoundError):
        store.retrieve("7/missing.json")
    assert issubclass(BlobNotFoundError, NotFoundError)


def test_update_is_not_an_upsert(store: BlobStore) -> None:
    with pytest.raises(BlobNotFoundError):
        store.update("7/missing.json", {"v": 1})
    assert not store.exists("7/missing.json")


def test_update_replaces_document(store: BlobStore) -> None:
    storage_path = store.store(7, "cfg", {"v": 1})
    store.update(storage_path, [1, "two", None])
    assert store.retrieve(storage_path) == [1, "two", None]


def test_delete_is_idempotent(store: BlobStore) -> None:
    storage_path = store.store(7, "cfg", DOCUMENT)

    store.delete(storage_path)
    store.delete(storage_path)

    assert not store.exists(storage_path)
    with pytest.raises(BlobNotFoundError):
        store.retrieve(storage_path)


def test_tenants_do_not_share_namespaces(store: BlobStore) -> None:
    store.store(1, "cfg", {"tenant": 1})
    store.store(2, "cfg", {"tenant": 2})

    assert store.retrieve("1/cfg.json") == {"tenant": 1}
    assert store.retrieve("2/cfg.json") == {"tenant": 2}
    assert sorted(store.iter_storage_paths()) == ["1/cfg.json", "2/cfg.json"]


@pytest.mark.parametrize("document", [{"bad": float("nan")}, {"bad": object()}])
def test_non_json_documents_are_rejected(store: BlobStore, document) -> None:
    with pytest.raises(ValidationError):
        store.store(7, "cfg", document)
    assert not store.exists("7/cfg.json")


def test_json_scalars_are_valid_documents(store: BlobStore) -> None:
    for key, document in (("n", None), ("s", "text"), ("i", 12), ("b", False)):
        storage_path = store.store(7, key, document)
        assert store.retrieve(storage_path) == document


def test_file_store_writes_canonical_json(tmp_path) -> None:
    store = FileBlobStore(tmp_path)
    store.init()
    store.store(7, "cfg", {"b": 1, "a": "é"})

    tenant_dir = tmp_path / "7"
    assert [p.name for p in tenant_dir.iterdir()] == ["cfg.json"]  # no temp files left behind
    assert (tenant_dir / "cfg.json").read_text(encoding="utf-8") == '{"a":"é","b":1}'


@pytest.mark.parametrize("storage_path", ["../escape.json", "7/../../escape.json", "/etc/passwd", ""])
def test_file_store_rejects_paths_outside_base(tmp_path, storage_path: str) -> None:
    store = FileBlobStore(tmp_path / "blobs")
    store.init()
    with pytest.raises(ValidationError):
        store.retrieve(storage_path)


def test_file_store_ignores_temp_files_when_listing(tmp_path) -> None:
    store = FileBlobStore(tmp_path)
    store.init()
    store.store(3, "cfg", {})
    (tmp_path / "3" / ".0123abcd.tmp").write_text("{}")
    (tmp_path / "stray.json").write_text("{}")

    assert list(store.iter_storage_paths()) == ["3/cfg.json"]


def test_file_store_lists_dot_prefixed_keys(tmp_path) -> None:
    store = FileBlobStore(tmp_path)
    store.init()
    store.store(3, ".env", {"debug": True})
    store.store(3, "cfg", {})

    assert list(store.iter_storage_paths()) == ["3/.env.json", "3/cfg.json"]


def test_storage_path_hashes_keys_too_long_for_a_filename() -> None:
    fits = "k" * 250
    assert BlobStore.storage_path_for(7, fits) == f"7/{fits}.json"

    long_path = BlobStore.storage_path_for(7, "k" * 251)
    tenant, filename = long_path.split("/")
    assert tenant == "7"
    assert filename.startswith("~") and filename.endswith(".json")
    assert len(filename.encode("utf-8")) <= 255
    assert long_path == BlobStore.storage_path_for(7, "k" * 251)
    assert long_path != BlobStore.storage_path_for(7, "k" * 252)

    # Multi-byte keys are measured in bytes, not characters
    assert BlobStore.storage_path_for(7, "é" * 200).split("/")[1].startswith("~")


def test_file_store_handles_longest_keys(tmp_path) -> None:
    store = FileBlobStore(tmp_path)
    store.init()
    for key in ("k" * 255, "é" * 255):
        storage_path = store.store(3, key, {"key": key})
        store.update(storage_path, {"key": key, "v": 2})
        assert store.retrieve(storage_path) == {"key": key, "v": 2}

    assert len(list(store.iter_storage_paths())) == 2


def test_file_store_corrupt_blob_is_unavailable(tmp_path) -> None:
    store = FileBlobStore(tmp_path)
    store.init()
    storage_path = store.store(3, "cfg", {})
    (tmp_path / "3" / "cfg.json").write_text("{not json")

    with pytest.raises(UnavailableError) as exc_info:
        store.retrieve(storage_path)
    assert storage_path not in exc_info.value.message


def test_build_blob_store_from_settings(settings, tmp_path) -> None:
    assert isinstance(build_blob_store(settings), InMemoryBlobStore)

    settings.storage_backend = "file"
    assert isinstance(build_blob_store(settings), FileBlobStore)

    settings.storage_backend = "s3"
    with pytest.raises(ValueError):
        build_blob_store(settings)


def test_memory_store_keeps_its_own_copy() -> None:
    store = InMemoryBlobStore()
    document = {"items": [1]}
    storage_path = store.store(1, "cfg", document)
    document["items"].append(2)

    assert store.retrieve(storage_path) == {"items": [1]}
