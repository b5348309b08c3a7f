"""Query dispatcher — hands pending queries to workers and accepts their results.

Correctness under concurrent polling is delegated to the store:
  - claim is a single UPDATE whose target row is picked by a locking subquery,
    so two claimers can never receive the same row
  - submit flips the status and writes every child row in one transaction

The dispatcher itself holds no mutable state; the session factory is injected.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import aliased

from serp_collector.exceptions import Conflict, InvalidRequest, NotFound
from serp_collector.models import Query, QueryStatus, RelatedSearch, Result, Suggestion
from serp_collector.schemas import ClaimedQuery, ResultSubmission

logger = logging.getLogger(__name__)

DEFAULT_RESULT_TYPE = "organic"


def _claim_statement(now: datetime):
    candidate = aliased(Query, name="candidate")
    next_id = (
        select(candidate.id)
        .where(candidate.status == QueryStatus.PENDING.value)
        .order_by(candidate.priority.desc(), candidate.created_at, candidate.id)
        .limit(1)
        .with_for_update(skip_locked=True)
        .scalar_subquery()
    )
    return (
        update(Query)
        .where(Query.id == next_id, Query.status == QueryStatus.PENDING.value)
        .values(status=QueryStatus.PROCESSING.value, processed_at=now)
        .returning(Query.id, Query.search_term)
        .execution_options(synchronize_session=False)
    )


def _child_rows(query_id: uuid.UUID, submission: ResultSubmission) -> list:
    rows: list = []
    for page in submission.pages or []:
        for item in page.results:
            rows.append(Result(
                query_id=query_id,
                page_number=page.page_number,
                position=item.position,
                title=item.title,
                url=item.url,
                domain=item.domain,
                description=item.description,
                result_type=item.type or DEFAULT_RESULT_TYPE,
            ))
    for text in submission.suggestions or []:
        rows.append(Suggestion(query_id=query_id, suggestion=text))
    for text in submission.related_searches or []:
        rows.append(RelatedSearch(query_id=query_id, search_term=text))
    return rows


class QueryDispatcher:
    """Stateless façade over the query table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], max_pages: int = 5):
        self._session_factory = session_factory
        self.max_pages = max_pages

    async def claim(self) -> ClaimedQuery | None:
        """Move the most urgent pending query to ``processing`` and return it.

        Order is priority DESC, then created_at ASC, then id. Returns None when
        nothing is pending.
        """
        stmt = _claim_statement(datetime.now(timezone.utc))
        async with self._session_factory() as session:
            async with session.begin():
                row = (await session.execute(stmt)).first()

        if row is None:
            logger.debug("Claim | no pending queries")
            return None

        logger.info("Claim | query_id=%s", row.id)
        return ClaimedQuery(
            query_id=row.id,
            search_term=row.search_term,
            max_pages=self.max_pages,
        )

    async def submit(self, submission: ResultSubmission) -> int:
        """Persist a worker's results and mark the query completed.

        All-or-nothing: if any insert fails the status flip is rolled back too.
        Resubmitting a completed query appends another copy of the child rows.
        Returns the number of child rows written.
        """
        if submission.query_id is None or submission.pages is None:
            raise InvalidRequest("Missing required fields: query_id, pages")

        query_id = submission.query_id
        rows = _child_rows(query_id, submission)

        async with self._session_factory() as session:
            async with session.begin():
                await self._mark_completed(session, query_id)
                session.add_all(rows)

        logger.info("Submit | query_id=%s | rows=%d", query_id, len(rows))
        return len(rows)

    async def _mark_completed(self, session: AsyncSession, query_id: uuid.UUID) -> None:
        # Locks the row on PostgreSQL, so concurrent resubmissions serialize.
        stmt = (
            update(Query)
            .where(
                Query.id == query_id,
                Query.status.in_([QueryStatus.PROCESSING.value, QueryStatus.COMPLETED.value]),
            )
            .values(status=QueryStatus.COMPLETED.value)
            .returning(Query.id)
            .execution_options(synchronize_session=False)
        )
        if (await session.execute(stmt)).first() is not None:
            return

        status = await session.scalar(select(Query.status).where(Query.id == query_id))
        if status is None:
            raise NotFound("Query not found")
        raise Conflict(f"Query is {status}; only claimed queries accept results")
