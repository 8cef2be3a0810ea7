"""
Rate plan component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import PlanChain


class PlanCatalogPort(Protocol):
    """
    Port for loading revision chains from the plan catalog.

    Implementations:
    - InMemoryPlanCatalog: chains registered from YAML/dict records
    - CachedPlanCatalog: memoizing decorator around another catalog
    """

    def load_chain(self, plan_id: str) -> PlanChain | None:
        """
        Load an immutable snapshot of a plan's revisions.

        Args:
            plan_id: Plan identifier

        Returns:
            PlanChain ordered newest first, or None if the plan is unknown
        """
        ...


class TimePort(Protocol):
    """Time source for evaluation instants."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

    def to_zone(self, dt: datetime, tz_name: str | None = None) -> datetime:
        """Convert a datetime to the given (or default) timezone."""
        ...
