# tests/test_snapshots.py
import copy

import pytest

from resume_revision.repositories.record_store import (
    RESUME_DATA_COLLECTION,
    VERSION_COUNTERS_COLLECTION,
    VERSIONS_COLLECTION,
    InMemoryRecordStore,
    RecordStoreError,
)
from resume_revision.services.snapshots import DocumentSnapshotStore


async def _snapshots(store, document):
    await store.create(RESUME_DATA_COLLECTION, document)
    snaps = DocumentSnapshotStore(store, document["resume_id"], lambda: document)
    await snaps.load()
    return snaps


@pytest.mark.asyncio
async def test_numbers_never_reused(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    v1 = await snaps.save()
    v2 = await snaps.save()
    v3 = await snaps.save()
    assert [v1.version_number, v2.version_number, v3.version_number] == [1, 2, 3]
    assert v1.name == "Version 1"

    assert await snaps.delete(v2.id)
    v4 = await snaps.save("After delete")
    assert v4.version_number == 4
    assert [v.version_number for v in snaps.versions] == [4, 3, 1]
    assert snaps.version_count == 4


@pytest.mark.asyncio
async def test_counter_survives_reload(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    await snaps.save()
    v2 = await snaps.save()
    await snaps.delete(v2.id)

    reloaded = DocumentSnapshotStore(store, sample_document["resume_id"], lambda: sample_document)
    assert await reloaded.load()
    assert reloaded.version_count == 2
    assert (await reloaded.save()).version_number == 3


@pytest.mark.asyncio
async def test_reload_without_counter_uses_highest_number(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    await snaps.save()
    await snaps.save()
    await store.delete(VERSION_COUNTERS_COLLECTION, sample_document["resume_id"])

    reloaded = DocumentSnapshotStore(store, sample_document["resume_id"], lambda: sample_document)
    await reloaded.load()
    assert reloaded.version_count == 2


@pytest.mark.asyncio
async def test_snapshot_is_independent_copy(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    version = await snaps.save()
    sample_document["professional_summary"] = "Changed later"
    assert version.data_snapshot["professional_summary"] == "Engineer with ten years of experience."


@pytest.mark.asyncio
async def test_restore_keeps_live_identity(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    version = await snaps.save()

    # snapshot carries foreign identity fields, e.g. copied from another resume
    foreign = copy.deepcopy(version.data_snapshot)
    foreign["id"] = "other-doc"
    foreign["resume_id"] = "other-resume"
    snaps._versions[0] = version.model_copy(update={"data_snapshot": foreign})

    sample_document["professional_summary"] = "Edited"
    await store.update(RESUME_DATA_COLLECTION, sample_document["id"], sample_document)

    restored = await snaps.restore(version.id)
    assert restored["id"] == "doc-1"
    assert restored["resume_id"] == "res-1"
    assert restored["professional_summary"] == "Engineer with ten years of experience."

    stored = await store.read(RESUME_DATA_COLLECTION, "doc-1")
    assert stored["professional_summary"] == "Engineer with ten years of experience."
    assert stored["resume_id"] == "res-1"
    assert await store.read(RESUME_DATA_COLLECTION, "other-doc") is None


@pytest.mark.asyncio
async def test_restore_with_backup(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    v1 = await snaps.save("First")
    sample_document["professional_summary"] = "Edited"

    restored = await snaps.restore(v1.id, backup_first=True)
    assert restored["professional_summary"] == "Engineer with ten years of experience."
    backup = snaps.versions[0]
    assert backup.version_number == 2
    assert backup.name == "Backup before restoring First"
    assert backup.data_snapshot["professional_summary"] == "Edited"


@pytest.mark.asyncio
async def test_restore_unknown_version(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    assert await snaps.restore("missing") is None


@pytest.mark.asyncio
async def test_restore_aborts_when_backup_fails(store, sample_document, monkeypatch):
    snaps = await _snapshots(store, sample_document)
    v1 = await snaps.save()
    sample_document["professional_summary"] = "Edited"
    await store.update(RESUME_DATA_COLLECTION, "doc-1", sample_document)

    async def failing_create(collection, data):
        raise RecordStoreError("down")

    monkeypatch.setattr(store, "create", failing_create)
    assert await snaps.restore(v1.id, backup_first=True) is None
    assert (await store.read(RESUME_DATA_COLLECTION, "doc-1"))["professional_summary"] == "Edited"


@pytest.mark.asyncio
async def test_failed_save_keeps_counter(store, sample_document, monkeypatch):
    snaps = await _snapshots(store, sample_document)
    await snaps.save()

    async def failing_create(collection, data):
        raise RecordStoreError("down")

    monkeypatch.setattr(store, "create", failing_create)
    assert await snaps.save() is None
    assert snaps.version_count == 1
    assert len(snaps.versions) == 1


@pytest.mark.asyncio
async def test_rename_defaults_empty_name(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    version = await snaps.save("Draft", "first pass")

    assert await snaps.rename(version.id, "Final", "ready")
    assert snaps.get(version.id).name == "Final"
    assert snaps.get(version.id).notes == "ready"

    assert await snaps.rename(version.id, "")
    assert snaps.get(version.id).name == "Version 1"
    assert not await snaps.rename("missing", "x")


@pytest.mark.asyncio
async def test_versions_are_scoped_per_resume(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    await snaps.save()

    other_doc = dict(sample_document, id="doc-2", resume_id="res-2")
    other = await _snapshots(store, other_doc)
    assert other.versions == []
    assert (await other.save()).version_number == 1


@pytest.mark.asyncio
async def test_delete_ignores_other_resumes_versions(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    other_doc = dict(sample_document, id="doc-2", resume_id="res-2")
    other = await _snapshots(store, other_doc)
    foreign = await other.save()

    assert await snaps.delete(foreign.id) is False
    assert await store.read(VERSIONS_COLLECTION, foreign.id) is not None
    assert other.get(foreign.id) is not None


@pytest.mark.asyncio
async def test_rename_keeps_omitted_fields(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    version = await snaps.save("Before interview", "tailored for Acme")

    assert await snaps.rename(version.id, notes="updated notes")
    assert snaps.get(version.id).name == "Before interview"
    assert snaps.get(version.id).notes == "updated notes"

    assert await snaps.rename(version.id, name="Final")
    assert snaps.get(version.id).notes == "updated notes"
    stored = await store.read(VERSIONS_COLLECTION, version.id)
    assert (stored["name"], stored["notes"]) == ("Final", "updated notes")


@pytest.mark.asyncio
async def test_load_skips_malformed_rows(store, sample_document):
    snaps = await _snapshots(store, sample_document)
    good = await snaps.save()
    await store.create(VERSIONS_COLLECTION, {"resume_id": "res-1", "name": "broken"})

    reloaded = DocumentSnapshotStore(store, "res-1", lambda: sample_document)
    assert await reloaded.load()
    assert [v.id for v in reloaded.versions] == [good.id]
    assert reloaded.version_count == 1


@pytest.mark.asyncio
async def test_load_failure_reported():
    class BrokenStore(InMemoryRecordStore):
        async def find(self, collection, filters=None):
            raise RecordStoreError("down")

    snaps = DocumentSnapshotStore(BrokenStore(), "res-1", lambda: {})
    assert await snaps.load() is False
