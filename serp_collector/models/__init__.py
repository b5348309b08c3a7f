"""SQLAlchemy ORM models."""

from serp_collector.models.base import Base
from serp_collector.models.project import Project
from serp_collector.models.query import Query, QueryStatus
from serp_collector.models.result import RelatedSearch, Result, Suggestion

__all__ = [
    "Base",
    "Project",
    "Query",
    "QueryStatus",
    "Result",
    "Suggestion",
    "RelatedSearch",
]
