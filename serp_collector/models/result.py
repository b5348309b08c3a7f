"""Child records written by a worker's result submission. Never updated."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from serp_collector.models.base import Base


class Result(Base):
    """One ranked entry on one SERP page."""

    __tablename__ = "results"
    __table_args__ = (
        Index("idx_results_query_page", "query_id", "page_number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    query_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("queries.id", ondelete="CASCADE"), nullable=False,
    )
    page_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_type: Mapped[str] = mapped_column(String(50), nullable=False, default="organic")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    query: Mapped["Query"] = relationship(back_populates="results")  # noqa: F821


class Suggestion(Base):
    __tablename__ = "suggestions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    query_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("queries.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    suggestion: Mapped[str] = mapped_column(Text, nullable=False)


class RelatedSearch(Base):
    __tablename__ = "related_searches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    query_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("queries.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    search_term: Mapped[str] = mapped_column(Text, nullable=False)
