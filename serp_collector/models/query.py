"""Query model — one search term waiting to be scraped by a worker."""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from serp_collector.models.base import Base


class QueryStatus(str, enum.Enum):
    """Lifecycle of a query. Only ever moves forward."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class Query(Base):
    """A unit of work handed out to exactly one worker at a time."""

    __tablename__ = "queries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    search_term: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QueryStatus.PENDING.value,
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    project: Mapped["Project"] = relationship(back_populates="queries")  # noqa: F821
    results: Mapped[list["Result"]] = relationship(  # noqa: F821
        back_populates="query", cascade="all, delete-orphan", passive_deletes=True,
    )
    suggestions: Mapped[list["Suggestion"]] = relationship(  # noqa: F821
        cascade="all, delete-orphan", passive_deletes=True,
    )
    related_searches: Mapped[list["RelatedSearch"]] = relationship(  # noqa: F821
        cascade="all, delete-orphan", passive_deletes=True,
    )


# Matches the claim ORDER BY: pending rows, most urgent first, oldest first
Index("idx_queries_status", Query.status, Query.priority.desc(), Query.created_at)
