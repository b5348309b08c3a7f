"""Internal admin endpoints (no auth for MVP — keep behind a trusted network)."""

import uuid

from fastapi import APIRouter, Depends, Query as QueryParam

from serp_collector.deps import get_project_store
from serp_collector.exceptions import STORE_ERRORS, StorageError
from serp_collector.schemas import (
    Ack,
    EnqueueRequest,
    EnqueueResult,
    ProjectCreate,
    ProjectOut,
    ProjectStats,
    QueryOut,
    QueryResults,
)
from serp_collector.services.projects import ProjectStore

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(store: ProjectStore = Depends(get_project_store)):
    try:
        return await store.list_projects()
    except STORE_ERRORS as e:
        raise StorageError("Failed to fetch projects", str(e)) from e


@router.post("/projects", response_model=ProjectOut)
async def create_project(body: ProjectCreate, store: ProjectStore = Depends(get_project_store)):
    try:
        return await store.create_project(body.name, body.description)
    except STORE_ERRORS as e:
        raise StorageError("Failed to create project", str(e)) from e


@router.delete("/projects/{project_id}", response_model=Ack)
async def delete_project(
    project_id: uuid.UUID,
    hard: bool = False,
    store: ProjectStore = Depends(get_project_store),
):
    try:
        if hard:
            await store.delete_project(project_id)
        else:
            await store.deactivate_project(project_id)
    except STORE_ERRORS as e:
        raise StorageError("Failed to delete project", str(e)) from e
    return Ack()


@router.post("/projects/{project_id}/queries", response_model=EnqueueResult)
async def add_queries(
    project_id: uuid.UUID,
    body: EnqueueRequest,
    store: ProjectStore = Depends(get_project_store),
):
    try:
        inserted = await store.enqueue(project_id, body.queries, body.priority)
    except STORE_ERRORS as e:
        raise StorageError("Failed to add queries", str(e)) from e
    return EnqueueResult(success=True, inserted=inserted)


@router.get("/projects/{project_id}/stats", response_model=ProjectStats)
async def project_stats(project_id: uuid.UUID, store: ProjectStore = Depends(get_project_store)):
    try:
        return await store.project_stats(project_id)
    except STORE_ERRORS as e:
        raise StorageError("Failed to get project stats", str(e)) from e


@router.get("/queries", response_model=list[QueryOut])
async def list_queries(
    status: str | None = None,
    project_id: uuid.UUID | None = None,
    limit: int = QueryParam(default=50, ge=0),
    offset: int = QueryParam(default=0, ge=0),
    store: ProjectStore = Depends(get_project_store),
):
    try:
        return await store.list_queries(status, project_id, limit, offset)
    except STORE_ERRORS as e:
        raise StorageError("Failed to fetch queries", str(e)) from e


@router.get("/queries/{query_id}/results", response_model=QueryResults)
async def query_results(query_id: uuid.UUID, store: ProjectStore = Depends(get_project_store)):
    try:
        return await store.query_results(query_id)
    except STORE_ERRORS as e:
        raise StorageError("Failed to fetch query results", str(e)) from e


@router.delete("/queries/{query_id}", response_model=Ack)
async def delete_query(query_id: uuid.UUID, store: ProjectStore = Depends(get_project_store)):
    try:
        await store.delete_query(query_id)
    except STORE_ERRORS as e:
        raise StorageError("Failed to delete query", str(e)) from e
    return Ack()
