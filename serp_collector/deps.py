"""FastAPI dependencies — wiring between the HTTP layer and the stores."""

import logging
import secrets

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from serp_collector.config import settings
from serp_collector.database import get_session_factory
from serp_collector.exceptions import Unauthorized
from serp_collector.services.dispatcher import QueryDispatcher
from serp_collector.services.projects import ProjectStore

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str:
    """Caller address, taken from X-Forwarded-For only when the proxy is trusted."""
    if settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if forwarded:
            return forwarded
    return request.client.host if request.client else "unknown"


async def require_worker_key(
    request: Request,
    x_api_key: str | None = Header(default=None),
) -> None:
    """Reject the request unless X-API-Key matches the shared worker secret."""
    expected = settings.api_key
    # Header values arrive latin-1 decoded; compare_digest only takes ASCII str
    if not x_api_key or not expected or not secrets.compare_digest(
        x_api_key.encode(), expected.encode(),
    ):
        logger.warning("Rejected worker key | path=%s | ip=%s", request.url.path, client_ip(request))
        raise Unauthorized("Invalid API key")


def get_dispatcher(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> QueryDispatcher:
    return QueryDispatcher(session_factory, max_pages=settings.max_pages)


def get_project_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ProjectStore:
    return ProjectStore(session_factory)
