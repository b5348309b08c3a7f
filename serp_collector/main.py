"""SERP Collector — FastAPI application entry point.

Workers poll /api/v1/queries/next and post to /api/v1/results;
admins manage projects under /api/v1/admin.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from serp_collector.config import settings
from serp_collector.exceptions import CollectorError
from serp_collector.routers import admin, worker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("serp_collector")

API_PREFIX = "/api/v1"


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("SERP Collector starting | env=%s | port=%d", settings.environment, settings.port)
    if not settings.api_key:
        logger.warning("API_KEY is not set — every worker request will be rejected")

    # Store may come up after us; requests fail individually until it does
    from serp_collector.database import close_db, init_db
    db_ok = await init_db()
    logger.info("Database: %s", "connected" if db_ok else "unavailable (continuing without)")

    yield

    await close_db()
    logger.info("SERP Collector shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="SERP Collector API",
    description="Dispatches search queries to scraping workers and stores their results",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-API-Key"],
)


# ═══════════════ ERRORS ═══════════════

@app.exception_handler(CollectorError)
async def collector_error_handler(request: Request, exc: CollectorError):
    if exc.status_code >= 500:
        logger.error("%s %s failed | %s | %s", request.method, request.url.path, exc.message, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}


app.include_router(worker.router, prefix=API_PREFIX)
app.include_router(admin.router, prefix=API_PREFIX)


def run():
    """Serve the app with uvicorn using the configured address."""
    import uvicorn

    uvicorn.run(
        "serp_collector.main:app",
        host=settings.host,
        port=settings.port,
        proxy_headers=settings.trust_proxy,
        forwarded_allow_ips="*" if settings.trust_proxy else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
