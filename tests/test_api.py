# tests/test_api.py
import pytest
from httpx import ASGITransport, AsyncClient

from resume_revision.main import app
from resume_revision.repositories.record_store import (
    PROVIDERS_COLLECTION,
    RESUME_DATA_COLLECTION,
    VERSIONS_COLLECTION,
    get_record_store,
)


@pytest.fixture
def client_store(store):
    app.dependency_overrides[get_record_store] = lambda: store
    yield store
    app.dependency_overrides.clear()


async def _seed(store, document):
    await store.create(RESUME_DATA_COLLECTION, document)
    await store.create(PROVIDERS_COLLECTION, {"id": "mock-1", "name": "Mock", "provider_type": "mock", "is_default": True})


@pytest.mark.asyncio
async def test_versions_flow(client_store, sample_document):
    await _seed(client_store, sample_document)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.get("/api/v1/resume-data/doc-1/versions")
        assert r.status_code == 200
        assert r.json()["items"] == []

        r = await ac.post("/api/v1/resume-data/doc-1/versions", json={"name": "First", "notes": "clean"})
        assert r.status_code == 200
        first = r.json()
        assert first["version_number"] == 1

        r = await ac.post("/api/v1/resume-data/doc-1/versions", json={})
        second = r.json()
        assert second["name"] == "Version 2"

        r = await ac.put(f"/api/v1/resume-data/doc-1/versions/{second['id']}", json={"name": "Renamed"})
        assert r.status_code == 200
        assert r.json()["name"] == "Renamed"

        r = await ac.delete(f"/api/v1/resume-data/doc-1/versions/{second['id']}")
        assert r.json() == {"deleted": True}

        r = await ac.post("/api/v1/resume-data/doc-1/versions", json={})
        assert r.json()["version_number"] == 3

        r = await ac.get("/api/v1/resume-data/doc-1/versions")
        body = r.json()
        assert [v["version_number"] for v in body["items"]] == [3, 1]
        assert body["version_count"] == 3

        r = await ac.get("/api/v1/resume-data/doc-1/versions/missing")
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_field_candidates_and_restore(client_store, sample_document):
    await _seed(client_store, sample_document)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/resume-data/doc-1/versions", json={"name": "Original"})
        version_id = r.json()["id"]

        r = await ac.post("/api/v1/resume-data/doc-1/fields/candidates", json={"path": "summary"})
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["path"] == "professional_summary"
        assert body["candidates"][-1] == "Engineer with ten years of experience."

        r = await ac.post("/api/v1/resume-data/doc-1/fields/accept", json={"path": "summary"})
        accepted = r.json()["value"]
        assert accepted == body["candidates"][0]

        r = await ac.get("/api/v1/resume-data/doc-1/fields/state", params={"path": "summary"})
        assert r.json()["can_undo"] is True
        assert r.json()["is_ai_content"] is True

        stored = await client_store.read(RESUME_DATA_COLLECTION, "doc-1")
        assert stored["professional_summary"] == accepted

        r = await ac.post("/api/v1/resume-data/doc-1/fields/candidates", json={"path": "summary"})
        assert r.status_code == 429
        assert r.json()["status"] == "too_soon"
        assert "Retry-After" in r.headers

        r = await ac.post(
            f"/api/v1/resume-data/doc-1/versions/{version_id}/restore", json={"backup_first": True}
        )
        assert r.status_code == 200
        assert r.json()["document"]["professional_summary"] == "Engineer with ten years of experience."

        r = await ac.get("/api/v1/resume-data/doc-1/fields/state", params={"path": "summary"})
        assert r.json()["can_undo"] is False

        r = await ac.get("/api/v1/resume-data/doc-1/versions")
        assert r.json()["items"][0]["name"] == "Backup before restoring Original"


@pytest.mark.asyncio
async def test_undo_without_history_is_noop(client_store, sample_document):
    await _seed(client_store, sample_document)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/resume-data/doc-1/fields/undo", json={"path": "summary"})
        assert r.status_code == 200
        assert r.json()["status"] == "noop"

        r = await ac.get("/api/v1/resume-data/doc-1/fields/state", params={"path": "skills[x]"})
        assert r.status_code == 400


@pytest.mark.asyncio
async def test_analysis_cache_over_http(client_store, sample_document):
    await _seed(client_store, sample_document)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.get("/api/v1/resume-data/doc-1/analysis")
        assert r.status_code == 404

        r = await ac.post("/api/v1/resume-data/doc-1/analysis", json={})
        assert r.status_code == 400

        r = await ac.post("/api/v1/resume-data/doc-1/analysis", json={"job_description": "Python and SQL"})
        assert r.status_code == 200
        first = r.json()
        assert first["cache_hit"] is False

        r = await ac.post("/api/v1/resume-data/doc-1/analysis", json={})
        assert r.json()["cache_hit"] is True
        assert r.json()["result"]["score"] == first["result"]["score"]

        r = await ac.get("/api/v1/resume-data/doc-1/analysis")
        assert r.status_code == 200
        assert r.json()["analyzed_input_text"] == "Python and SQL"


@pytest.mark.asyncio
async def test_unknown_document(client_store):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.get("/api/v1/resume-data/nope/versions")
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_version_update_and_delete_are_scoped(client_store, sample_document):
    await _seed(client_store, sample_document)
    await client_store.create(RESUME_DATA_COLLECTION, dict(sample_document, id="doc-2", resume_id="res-2"))
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        r = await ac.post("/api/v1/resume-data/doc-1/versions", json={"name": "Before interview", "notes": "draft"})
        version_id = r.json()["id"]

        r = await ac.put(f"/api/v1/resume-data/doc-1/versions/{version_id}", json={"notes": "updated notes"})
        assert r.status_code == 200
        assert r.json()["name"] == "Before interview"
        assert r.json()["notes"] == "updated notes"

        r = await ac.delete(f"/api/v1/resume-data/doc-2/versions/{version_id}")
        assert r.status_code == 404
        assert await client_store.read(VERSIONS_COLLECTION, version_id) is not None

        r = await ac.get("/api/v1/resume-data/doc-1/versions")
        assert [v["id"] for v in r.json()["items"]] == [version_id]
