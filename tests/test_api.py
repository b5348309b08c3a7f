"""End-to-end API tests — drives the FastAPI app against a throwaway SQLite store."""

import uuid

import pytest

from serp_collector.config import settings

API = "/api/v1"


async def _create_project(client, name="P") -> str:
    resp = await client.post(f"{API}/admin/projects", json={"name": name})
    assert resp.status_code == 200
    return resp.json()["id"]


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "OK"
        assert "timestamp" in data


class TestWorkerAuth:
    @pytest.mark.asyncio
    async def test_missing_key(self, client):
        resp = await client.get(f"{API}/queries/next")
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid API key"}

    @pytest.mark.asyncio
    async def test_wrong_key(self, client):
        resp = await client.post(
            f"{API}/results",
            json={"query_id": str(uuid.uuid4()), "pages": []},
            headers={"X-API-Key": "not-the-key"},
        )
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_unset_secret_rejects_everyone(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "")
        resp = await client.get(f"{API}/queries/next", headers={"X-API-Key": ""})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_non_ascii_key_rejected(self, client):
        resp = await client.get(
            f"{API}/queries/next", headers={"X-API-Key": "klé".encode("latin-1")},
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Invalid API key"}

    @pytest.mark.asyncio
    async def test_non_ascii_secret_accepted(self, client, monkeypatch):
        monkeypatch.setattr(settings, "api_key", "klé")
        resp = await client.get(
            f"{API}/queries/next", headers={"X-API-Key": "klé".encode("latin-1")},
        )
        assert resp.status_code == 200
        assert resp.json() is None

    @pytest.mark.asyncio
    async def test_admin_needs_no_key(self, client):
        resp = await client.get(f"{API}/admin/projects")
        assert resp.status_code == 200
        assert resp.json() == []


class TestWorkerEndpoints:
    @pytest.mark.asyncio
    async def test_no_work_returns_null(self, client, worker_headers):
        resp = await client.get(f"{API}/queries/next", headers=worker_headers)
        assert resp.status_code == 200
        assert resp.json() is None

    @pytest.mark.asyncio
    async def test_submit_missing_fields(self, client, worker_headers):
        resp = await client.post(f"{API}/results", json={"pages": []}, headers=worker_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields: query_id, pages"

    @pytest.mark.asyncio
    async def test_submit_malformed_body(self, client, worker_headers):
        resp = await client.post(
            f"{API}/results",
            json={"query_id": "not-a-uuid", "pages": "nope"},
            headers=worker_headers,
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    @pytest.mark.asyncio
    async def test_submit_unknown_query(self, client, worker_headers):
        resp = await client.post(
            f"{API}/results",
            json={"query_id": str(uuid.uuid4()), "pages": []},
            headers=worker_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_submit_unclaimed_query(self, client, worker_headers):
        project_id = await _create_project(client)
        await client.post(f"{API}/admin/projects/{project_id}/queries", json={"queries": ["x"]})
        [query] = (await client.get(f"{API}/admin/queries")).json()

        resp = await client.post(
            f"{API}/results",
            json={"query_id": query["id"], "pages": []},
            headers=worker_headers,
        )
        assert resp.status_code == 409
        assert (await client.get(f"{API}/admin/queries")).json()[0]["status"] == "pending"


class TestScenario:
    @pytest.mark.asyncio
    async def test_enqueue_claim_submit_stats(self, client, worker_headers, sample_pages):
        project_id = await _create_project(client, "P")

        resp = await client.post(
            f"{API}/admin/projects/{project_id}/queries",
            json={"queries": ["گربه سیاه", "foo"], "priority": 10},
        )
        assert resp.json() == {"success": True, "inserted": 2}

        resp = await client.get(f"{API}/queries/next", headers=worker_headers)
        claimed = resp.json()
        assert claimed["search_term"] == "گربه سیاه"
        assert claimed["max_pages"] == 5

        resp = await client.post(
            f"{API}/results",
            json={
                "query_id": claimed["query_id"],
                "pages": sample_pages,
                "suggestions": ["گربه سیاه ایرانی"],
                "related_searches": ["black cat"],
                "total_results": 1200,
            },
            headers=worker_headers,
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        stats = (await client.get(f"{API}/admin/projects/{project_id}/stats")).json()
        assert stats["queries"] == {"pending": 1, "processing": 0, "completed": 1, "total": 2}
        assert stats["top_domains"][0] == {"domain": "fa.wikipedia.org", "count": 2}

        data = (await client.get(f"{API}/admin/queries/{claimed['query_id']}/results")).json()
        assert [r["position"] for r in data["results"]] == [1, 2, 1]
        assert data["results"][0]["result_type"] == "organic"
        assert data["suggestions"] == ["گربه سیاه ایرانی"]
        assert data["related_searches"] == ["black cat"]


class TestAdminEndpoints:
    @pytest.mark.asyncio
    async def test_create_and_list_projects(self, client):
        resp = await client.post(
            f"{API}/admin/projects",
            json={"name": "Competitors", "description": "Competitor domain tracking"},
        )
        assert resp.status_code == 200
        created = resp.json()
        assert created["is_active"] is True

        listed = (await client.get(f"{API}/admin/projects")).json()
        assert [p["id"] for p in listed] == [created["id"]]

    @pytest.mark.asyncio
    async def test_create_project_requires_name(self, client):
        resp = await client.post(f"{API}/admin/projects", json={"description": "nameless"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Project name is required"}

    @pytest.mark.asyncio
    async def test_enqueue_requires_queries(self, client):
        project_id = await _create_project(client)
        resp = await client.post(f"{API}/admin/projects/{project_id}/queries", json={"queries": []})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Queries array is required"}

    @pytest.mark.asyncio
    async def test_enqueue_unknown_project(self, client):
        resp = await client.post(
            f"{API}/admin/projects/{uuid.uuid4()}/queries", json={"queries": ["x"]},
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_list_queries_filters(self, client, worker_headers):
        project_id = await _create_project(client)
        await client.post(
            f"{API}/admin/projects/{project_id}/queries", json={"queries": ["a", "b", "c"]},
        )
        await client.get(f"{API}/queries/next", headers=worker_headers)

        pending = (await client.get(f"{API}/admin/queries", params={"status": "pending"})).json()
        assert len(pending) == 2
        assert all(q["project_name"] == "P" for q in pending)

        limited = (await client.get(
            f"{API}/admin/queries", params={"project_id": project_id, "limit": 1},
        )).json()
        assert len(limited) == 1

    @pytest.mark.asyncio
    async def test_list_queries_bad_limit(self, client):
        resp = await client.get(f"{API}/admin/queries", params={"limit": "lots"})
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_soft_and_hard_delete_project(self, client):
        project_id = await _create_project(client)
        await client.post(f"{API}/admin/projects/{project_id}/queries", json={"queries": ["a"]})

        assert (await client.delete(f"{API}/admin/projects/{project_id}")).json() == {"success": True}
        assert (await client.get(f"{API}/admin/projects")).json() == []
        assert len((await client.get(f"{API}/admin/queries")).json()) == 1

        resp = await client.delete(f"{API}/admin/projects/{project_id}", params={"hard": "true"})
        assert resp.status_code == 200
        assert (await client.get(f"{API}/admin/queries")).json() == []

        resp = await client.delete(f"{API}/admin/projects/{project_id}", params={"hard": "true"})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_query(self, client):
        project_id = await _create_project(client)
        await client.post(f"{API}/admin/projects/{project_id}/queries", json={"queries": ["a"]})
        [query] = (await client.get(f"{API}/admin/queries")).json()

        assert (await client.delete(f"{API}/admin/queries/{query['id']}")).status_code == 200
        assert (await client.get(f"{API}/admin/queries")).json() == []
        assert len((await client.get(f"{API}/admin/projects")).json()) == 1


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_store_error_is_uniform_500(self, client, worker_headers):
        # Point the app at a database file that cannot be opened
        from serp_collector.database import build_engine, build_session_factory, get_session_factory
        from serp_collector.main import app

        broken = build_engine("sqlite+aiosqlite:////nonexistent-dir/serp.db")
        app.dependency_overrides[get_session_factory] = lambda: build_session_factory(broken)

        resp = await client.get(f"{API}/queries/next", headers=worker_headers)
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to get next query"
        assert body["details"]

        resp = await client.get(f"{API}/admin/projects")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to fetch projects"
        await broken.dispose()

    @pytest.mark.asyncio
    async def test_unreachable_postgres_is_uniform_500(self, client, worker_headers):
        # Nothing listens on port 1: the driver raises a bare connection error
        from serp_collector.database import build_engine, build_session_factory, get_session_factory
        from serp_collector.main import app

        down = build_engine("postgresql+asyncpg://u:p@127.0.0.1:1/db")
        app.dependency_overrides[get_session_factory] = lambda: build_session_factory(down)

        resp = await client.get(f"{API}/queries/next", headers=worker_headers)
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to get next query"
        assert body["details"]

        resp = await client.post(
            f"{API}/results",
            json={"query_id": str(uuid.uuid4()), "pages": []},
            headers=worker_headers,
        )
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to save results"

        resp = await client.get(f"{API}/admin/projects")
        assert resp.status_code == 500
        assert resp.json()["error"] == "Failed to fetch projects"
        await down.dispose()
