"""Pydantic models for API input/output.

Split into: worker payloads, admin payloads, and read models.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# ═══════════════ WORKER ═══════════════

class ClaimedQuery(BaseModel):
    """Handed to exactly one worker by the dispatcher."""
    query_id: uuid.UUID
    search_term: str
    max_pages: int


class SerpResult(BaseModel):
    """One entry as scraped by the extension."""
    model_config = ConfigDict(extra="ignore")

    position: int | None = None
    title: str | None = None
    url: str | None = None
    domain: str | None = None
    description: str | None = None
    type: str | None = None


class SerpPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    page_number: int | None = None
    results: list[SerpResult] = Field(default_factory=list)


class ResultSubmission(BaseModel):
    """Body of POST /results. Presence of query_id and pages is checked by the dispatcher."""
    model_config = ConfigDict(extra="ignore")

    query_id: uuid.UUID | None = None
    pages: list[SerpPage] | None = None
    suggestions: list[str] | None = None
    related_searches: list[str] | None = None


# ═══════════════ ADMIN INPUTS ═══════════════

class ProjectCreate(BaseModel):
    name: str | None = None
    description: str | None = None


class EnqueueRequest(BaseModel):
    queries: list[str] | None = None
    priority: int = 0


# ═══════════════ READ MODELS ═══════════════

class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: str | None = None
    created_at: datetime
    is_active: bool


class QueryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    project_id: uuid.UUID
    search_term: str
    status: str
    priority: int
    created_at: datetime
    processed_at: datetime | None = None
    project_name: str | None = None


class ResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    query_id: uuid.UUID
    page_number: int | None = None
    position: int | None = None
    title: str | None = None
    url: str | None = None
    domain: str | None = None
    description: str | None = None
    result_type: str
    created_at: datetime


class QueryResults(BaseModel):
    results: list[ResultOut] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    related_searches: list[str] = Field(default_factory=list)


class StatusCounts(BaseModel):
    pending: int = 0
    processing: int = 0
    completed: int = 0
    total: int = 0


class DomainCount(BaseModel):
    domain: str
    count: int


class ProjectStats(BaseModel):
    queries: StatusCounts = Field(default_factory=StatusCounts)
    top_domains: list[DomainCount] = Field(default_factory=list)


class EnqueueResult(BaseModel):
    success: bool = True
    inserted: int = 0


class Ack(BaseModel):
    success: bool = True
