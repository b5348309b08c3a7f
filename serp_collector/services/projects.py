"""Admin store — project and query CRUD plus progress reporting."""

import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from serp_collector.exceptions import InvalidRequest, NotFound
from serp_collector.models import Project, Query, QueryStatus, RelatedSearch, Result, Suggestion
from serp_collector.schemas import (
    DomainCount,
    ProjectOut,
    ProjectStats,
    QueryOut,
    QueryResults,
    ResultOut,
    StatusCounts,
)

logger = logging.getLogger(__name__)

TOP_DOMAINS_LIMIT = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectStore:
    """Parameterized persistence for the admin endpoints."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ─── projects ───

    async def list_projects(self) -> list[ProjectOut]:
        stmt = (
            select(Project)
            .where(Project.is_active.is_(True))
            .order_by(Project.created_at.desc())
        )
        async with self._session_factory() as session:
            projects = (await session.scalars(stmt)).all()
        return [ProjectOut.model_validate(p) for p in projects]

    async def create_project(self, name: str | None, description: str | None = None) -> ProjectOut:
        if not name:
            raise InvalidRequest("Project name is required")

        project = Project(name=name, description=description)
        async with self._session_factory() as session:
            async with session.begin():
                session.add(project)
        logger.info("Project created | id=%s | name=%s", project.id, name)
        return ProjectOut.model_validate(project)

    async def deactivate_project(self, project_id: uuid.UUID) -> None:
        """Soft delete: the project disappears from listings, its queries stay."""
        stmt = (
            update(Project)
            .where(Project.id == project_id)
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("Project not found")
        logger.info("Project deactivated | id=%s", project_id)

    async def delete_project(self, project_id: uuid.UUID) -> None:
        """Hard delete. Queries and their child rows go with it."""
        stmt = (
            delete(Project)
            .where(Project.id == project_id)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("Project not found")
        logger.info("Project deleted | id=%s", project_id)

    # ─── queries ───

    async def enqueue(
        self,
        project_id: uuid.UUID,
        terms: list[str] | None,
        priority: int = 0,
    ) -> int:
        """Insert the non-blank terms as pending queries. Returns how many were inserted.

        Terms get strictly increasing ``created_at`` values, so equal-priority
        terms are claimed in the order they were submitted. The project row is
        locked while stamping and each batch starts after the project's newest
        query, so overlapping batches for one project never interleave.
        """
        if not terms:
            raise InvalidRequest("Queries array is required")

        cleaned = [t.strip() for t in terms if t and t.strip()]
        async with self._session_factory() as session:
            async with session.begin():
                if await session.get(Project, project_id, with_for_update=True) is None:
                    raise NotFound("Project not found")
                base = await self._next_created_at(session, project_id)
                session.add_all([
                    Query(
                        project_id=project_id,
                        search_term=term,
                        priority=priority,
                        status=QueryStatus.PENDING.value,
                        created_at=base + timedelta(microseconds=i),
                    )
                    for i, term in enumerate(cleaned)
                ])

        logger.info(
            "Enqueued | project_id=%s | inserted=%d | skipped=%d | priority=%d",
            project_id, len(cleaned), len(terms) - len(cleaned), priority,
        )
        return len(cleaned)

    async def _next_created_at(self, session: AsyncSession, project_id: uuid.UUID) -> datetime:
        latest = await session.scalar(
            select(func.max(Query.created_at)).where(Query.project_id == project_id)
        )
        now = _utcnow()
        if latest is None:
            return now
        if latest.tzinfo is None:
            latest = latest.replace(tzinfo=timezone.utc)
        return max(now, latest + timedelta(microseconds=1))

    async def list_queries(
        self,
        status: str | None = None,
        project_id: uuid.UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[QueryOut]:
        stmt = select(Query, Project.name).join(Project, Query.project_id == Project.id)
        if status:
            stmt = stmt.where(Query.status == status)
        if project_id:
            stmt = stmt.where(Query.project_id == project_id)
        stmt = (
            stmt.order_by(Query.priority.desc(), Query.created_at.desc())
            .limit(limit)
            .offset(offset)
        )

        async with self._session_factory() as session:
            rows = (await session.execute(stmt)).all()

        out = []
        for query, project_name in rows:
            item = QueryOut.model_validate(query)
            item.project_name = project_name
            out.append(item)
        return out

    async def delete_query(self, query_id: uuid.UUID) -> None:
        """Hard delete. Results, suggestions and related searches go with it."""
        stmt = (
            delete(Query)
            .where(Query.id == query_id)
            .execution_options(synchronize_session=False)
        )
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(stmt)
        if result.rowcount == 0:
            raise NotFound("Query not found")
        logger.info("Query deleted | id=%s", query_id)

    # ─── reporting ───

    async def project_stats(self, project_id: uuid.UUID) -> ProjectStats:
        counts_stmt = select(
            func.count().filter(Query.status == QueryStatus.PENDING.value).label("pending"),
            func.count().filter(Query.status == QueryStatus.PROCESSING.value).label("processing"),
            func.count().filter(Query.status == QueryStatus.COMPLETED.value).label("completed"),
            func.count().label("total"),
        ).where(Query.project_id == project_id)

        domain_count = func.count(Result.id).label("count")
        domains_stmt = (
            select(Result.domain, domain_count)
            .join(Query, Result.query_id == Query.id)
            .where(Query.project_id == project_id, Result.domain.is_not(None))
            .group_by(Result.domain)
            .order_by(domain_count.desc(), Result.domain)
            .limit(TOP_DOMAINS_LIMIT)
        )

        async with self._session_factory() as session:
            counts = (await session.execute(counts_stmt)).one()
            domains = (await session.execute(domains_stmt)).all()

        return ProjectStats(
            queries=StatusCounts(
                pending=counts.pending or 0,
                processing=counts.processing or 0,
                completed=counts.completed or 0,
                total=counts.total or 0,
            ),
            top_domains=[DomainCount(domain=d, count=c) for d, c in domains],
        )

    async def query_results(self, query_id: uuid.UUID) -> QueryResults:
        results_stmt = (
            select(Result)
            .where(Result.query_id == query_id)
            .order_by(Result.page_number, Result.position)
        )
        suggestions_stmt = (
            select(Suggestion.suggestion)
            .where(Suggestion.query_id == query_id)
            .order_by(Suggestion.id)
        )
        related_stmt = (
            select(RelatedSearch.search_term)
            .where(RelatedSearch.query_id == query_id)
            .order_by(RelatedSearch.id)
        )

        async with self._session_factory() as session:
            results = (await session.scalars(results_stmt)).all()
            suggestions = (await session.scalars(suggestions_stmt)).all()
            related = (await session.scalars(related_stmt)).all()

        return QueryResults(
            results=[ResultOut.model_validate(r) for r in results],
            suggestions=list(suggestions),
            related_searches=list(related),
        )
