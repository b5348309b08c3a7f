"""Shared test fixtures and configuration."""

import os

import pytest
from httpx import ASGITransport, AsyncClient

# Worker key used by the API tests; must be set before the app is imported
os.environ.setdefault("API_KEY", "test-worker-key")

from serp_collector.database import build_engine, build_session_factory, get_session_factory, init_db  # noqa: E402
from serp_collector.config import settings  # noqa: E402
from serp_collector.main import app  # noqa: E402
from serp_collector.services.dispatcher import QueryDispatcher  # noqa: E402
from serp_collector.services.projects import ProjectStore  # noqa: E402


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so that concurrent sessions use separate connections."""
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'serp.db'}")
    assert await init_db(eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def dispatcher(session_factory):
    return QueryDispatcher(session_factory, max_pages=5)


@pytest.fixture
def store(session_factory):
    return ProjectStore(session_factory)


@pytest.fixture
async def project(store):
    return await store.create_project("Default", "General SERP tracking")


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def worker_headers():
    return {"X-API-Key": settings.api_key}


@pytest.fixture
def sample_pages():
    """Two SERP pages as posted by the extension."""
    return [
        {
            "page_number": 1,
            "results": [
                {
                    "position": 1,
                    "title": "گربه سیاه - ویکی‌پدیا",
                    "url": "https://fa.wikipedia.org/wiki/گربه_سیاه",
                    "domain": "fa.wikipedia.org",
                    "description": "گربه سیاه گربه‌ای است با موهای سیاه",
                },
                {
                    "position": 2,
                    "title": "Black cat",
                    "url": "https://en.wikipedia.org/wiki/Black_cat",
                    "domain": "en.wikipedia.org",
                    "description": "A black cat is a domestic cat with black fur.",
                    "type": "featured_snippet",
                },
            ],
        },
        {
            "page_number": 2,
            "results": [
                {
                    "position": 1,
                    "title": "Cats on Wikipedia",
                    "url": "https://fa.wikipedia.org/wiki/گربه",
                    "domain": "fa.wikipedia.org",
                    "description": "",
                },
            ],
        },
    ]
