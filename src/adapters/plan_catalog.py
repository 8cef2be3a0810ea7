"""
Plan catalog adapters (PlanCatalogPort implementations).

InMemoryPlanCatalog holds revision chains registered from records (as
parsed from a YAML catalog file) and hands out immutable PlanChain
snapshots. CachedPlanCatalog memoizes snapshots of another catalog.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, ValidationError

from src.components.rate_plans import PlanCatalogPort, PlanChain, PlanRevision

logger = logging.getLogger(__name__)


# --- Records ---


class RevisionRecord(BaseModel):
    """One revision as stored in the catalog file."""

    id: str
    start: AwareDatetime
    end: AwareDatetime | None = None
    previous: str | None = Field(default=None, alias="previous_id")
    name: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    def to_revision(self, plan_id: str) -> PlanRevision:
        return PlanRevision(
            id=self.id,
            start=self.start,
            end=self.end,
            previous_id=self.previous,
            plan_id=plan_id,
            name=self.name,
        )


class PlanRecord(BaseModel):
    revisions: list[RevisionRecord]


class CatalogFile(BaseModel):
    plans: dict[str, PlanRecord] = {}


# --- In-Memory Catalog ---


class InMemoryPlanCatalog:
    """
    In-memory plan catalog.

    Chains are validated on registration: revision ids must be unique and
    every predecessor must exist in the same plan. Cycles are not rejected
    here, the resolver reports them.
    """

    def __init__(self) -> None:
        self._chains: dict[str, PlanChain] = {}
        self._lock = threading.Lock()

    def register(self, plan_id: str, revisions: Iterable[PlanRevision]) -> PlanChain:
        """Register (or replace) a plan's revisions."""
        revisions = list(revisions)
        ids = [r.id for r in revisions]

        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(
                f"Plan '{plan_id}' has duplicate revision ids: {sorted(duplicates)}"
            )

        known = set(ids)
        for revision in revisions:
            if revision.previous_id is not None and revision.previous_id not in known:
                raise ValueError(
                    f"Revision '{revision.id}' in plan '{plan_id}' supersedes "
                    f"unknown revision '{revision.previous_id}'"
                )

        chain = PlanChain.from_revisions(plan_id, revisions)
        with self._lock:
            self._chains[plan_id] = chain

        logger.debug("Registered plan %s with %d revisions", plan_id, chain.length)
        return chain

    def register_records(
        self, plan_id: str, records: Iterable[Mapping[str, Any]]
    ) -> PlanChain:
        """Register a plan from plain dict records."""
        try:
            parsed = [RevisionRecord.model_validate(dict(r)) for r in records]
        except ValidationError as e:
            raise ValueError(f"Invalid revision records for plan '{plan_id}':\n{e}") from e

        return self.register(plan_id, [r.to_revision(plan_id) for r in parsed])

    def remove(self, plan_id: str) -> None:
        with self._lock:
            self._chains.pop(plan_id, None)

    def load_chain(self, plan_id: str) -> PlanChain | None:
        """Get the current snapshot of a plan's chain."""
        with self._lock:
            return self._chains.get(plan_id)

    def plan_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._chains)

    @classmethod
    def from_data(cls, data: Mapping[str, Any] | None) -> InMemoryPlanCatalog:
        """Build a catalog from a parsed catalog document."""
        try:
            document = CatalogFile.model_validate(data or {})
        except ValidationError as e:
            raise ValueError(f"Plan catalog validation failed:\n{e}") from e

        catalog = cls()
        for plan_id, plan in document.plans.items():
            catalog.register(plan_id, [r.to_revision(plan_id) for r in plan.revisions])
        return catalog

    @classmethod
    def from_file(cls, path: Path) -> InMemoryPlanCatalog:
        """
        Load a catalog from a YAML file.

        Raises FileNotFoundError if file missing.
        Raises ValueError if the YAML or its records are invalid.
        """
        if not path.exists():
            raise FileNotFoundError(f"Plan catalog not found at: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML syntax in plan catalog: {e}") from e

        catalog = cls.from_data(data)
        logger.info("Loaded %d plans from %s", len(catalog.plan_ids()), path)
        return catalog


# --- Caching Decorator ---


class CachedPlanCatalog:
    """
    Memoizes chain snapshots from another catalog.

    Misses (unknown plans) are not cached. Call invalidate() after the
    underlying catalog refreshes.
    """

    def __init__(self, inner: PlanCatalogPort, enabled: bool = True) -> None:
        self._inner = inner
        self._enabled = enabled
        self._cache: dict[str, PlanChain] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def load_chain(self, plan_id: str) -> PlanChain | None:
        if not self._enabled:
            return self._inner.load_chain(plan_id)

        with self._lock:
            cached = self._cache.get(plan_id)
            if cached is not None:
                self.hits += 1
                logger.debug("Plan catalog cache hit for %s", plan_id)
                return cached
            self.misses += 1

        chain = self._inner.load_chain(plan_id)
        if chain is not None:
            with self._lock:
                self._cache[plan_id] = chain
        return chain

    def invalidate(self, plan_id: str | None = None) -> None:
        """Drop one plan's snapshot, or everything."""
        with self._lock:
            if plan_id is None:
                self._cache.clear()
            else:
                self._cache.pop(plan_id, None)
