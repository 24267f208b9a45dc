"""Unit tests for the file-system blob store and usage accounting."""

import os
import time

import pytest

from docvault.core.exceptions import StorageIOError
from docvault.domains.storage.blob_store import PARTIAL_SUFFIX, BlobStore
from docvault.domains.storage.usage import UsageAccountant

OWNER = "3f0c2d4e-8a61-4c55-9a53-2f5d1f8b1e77"


@pytest.mark.asyncio
async def test_put_writes_file_under_namespace(blob_store: BlobStore) -> None:
    blob = await blob_store.put(OWNER, "Report.JSON", b'{"a": 1}')

    assert blob.size == 8
    assert blob.physical_name.startswith("Report--")
    assert blob.physical_name.endswith(".json")
    assert blob.path == f"/uploads/{OWNER}/{blob.physical_name}"
    assert (blob_store.root / OWNER / blob.physical_name).read_bytes() == b'{"a": 1}'
    assert not list((blob_store.root / OWNER).glob(f"*{PARTIAL_SUFFIX}"))


@pytest.mark.asyncio
async def test_same_name_never_overwrites(blob_store: BlobStore) -> None:
    first = await blob_store.put(OWNER, "a.json", b"1")
    second = await blob_store.put(OWNER, "a.json", b"22")

    assert first.physical_name != second.physical_name
    assert await blob_store.list_blobs(OWNER) == {first.physical_name: 1, second.physical_name: 2}


@pytest.mark.asyncio
async def test_empty_content_is_stored(blob_store: BlobStore) -> None:
    blob = await blob_store.put(OWNER, "empty.json", b"")

    assert blob.size == 0
    assert await blob_store.exists(OWNER, blob.physical_name)


@pytest.mark.asyncio
async def test_delete_is_idempotent(blob_store: BlobStore) -> None:
    blob = await blob_store.put(OWNER, "a.json", b"data")

    assert await blob_store.delete(OWNER, blob.physical_name) is True
    assert await blob_store.delete(OWNER, blob.physical_name) is False
    assert not await blob_store.exists(OWNER, blob.physical_name)


@pytest.mark.asyncio
async def test_list_blobs_of_missing_namespace_is_empty(blob_store: BlobStore) -> None:
    assert await blob_store.list_blobs("never-written") == {}
    assert await blob_store.list_namespaces() == []


@pytest.mark.asyncio
async def test_namespaces_are_isolated(blob_store: BlobStore) -> None:
    await blob_store.put("owner-a", "a.json", b"aaaa")
    await blob_store.put("owner-b", "b.json", b"bb")

    assert sum((await blob_store.list_blobs("owner-a")).values()) == 4
    assert sum((await blob_store.list_blobs("owner-b")).values()) == 2
    assert await blob_store.list_namespaces() == ["owner-a", "owner-b"]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", ".", "..", "a/b"])
async def test_invalid_namespace_names_are_rejected(blob_store: BlobStore, name: str) -> None:
    with pytest.raises(StorageIOError):
        await blob_store.put(name, "a.json", b"x")


@pytest.mark.asyncio
async def test_delete_rejects_path_traversal(blob_store: BlobStore) -> None:
    with pytest.raises(StorageIOError):
        await blob_store.delete(OWNER, "../escape.json")


@pytest.mark.asyncio
async def test_unwritable_root_raises_storage_error(tmp_path) -> None:
    root = tmp_path / "file-not-dir"
    root.write_text("occupied")
    store = BlobStore(root)

    with pytest.raises(StorageIOError):
        await store.put(OWNER, "a.json", b"x")


@pytest.mark.asyncio
async def test_remove_namespace(blob_store: BlobStore) -> None:
    await blob_store.put(OWNER, "a.json", b"x")

    assert await blob_store.remove_namespace(OWNER) is True
    assert await blob_store.remove_namespace(OWNER) is False
    assert await blob_store.list_blobs(OWNER) == {}


@pytest.mark.asyncio
async def test_sweep_partials_removes_only_stale_files(blob_store: BlobStore) -> None:
    namespace = await blob_store.ensure_namespace(OWNER)
    stale = namespace / f"old.json{PARTIAL_SUFFIX}"
    fresh = namespace / f"new.json{PARTIAL_SUFFIX}"
    stale.write_bytes(b"x")
    fresh.write_bytes(b"y")
    past = time.time() - 7200
    os.utime(stale, (past, past))

    removed = await blob_store.sweep_partials(3600)

    assert removed == [stale]
    assert not stale.exists()
    assert fresh.exists()


@pytest.mark.asyncio
async def test_usage_is_sum_of_file_sizes(blob_store: BlobStore) -> None:
    usage = UsageAccountant(blob_store)
    first = await blob_store.put(OWNER, "a.json", b"x" * 100)
    await blob_store.put(OWNER, "b.json", b"x" * 250)

    assert await usage.used_bytes(OWNER) == 350
    assert await usage.used_bytes(OWNER, exclude=[first.physical_name]) == 250
    assert await usage.used_bytes("nobody") == 0


@pytest.mark.asyncio
async def test_usage_counts_files_unknown_to_catalog(blob_store: BlobStore) -> None:
    namespace = await blob_store.ensure_namespace(OWNER)
    (namespace / "stray.bin").write_bytes(b"z" * 64)

    assert await UsageAccountant(blob_store).used_bytes(OWNER) == 64
