"""Dispatcher and admin store, both built on an injected session factory."""

from serp_collector.services.dispatcher import QueryDispatcher
from serp_collector.services.projects import ProjectStore

__all__ = ["QueryDispatcher", "ProjectStore"]
