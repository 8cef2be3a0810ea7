"""
Rate plan component models.

Revisions, chains, resolution config and the component input/output models.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Protocol

# --- Error Types ---


class RatePlanResolutionError(Exception):
    """Base rate plan resolution error."""

    pass


class MalformedChainError(RatePlanResolutionError, ValueError):
    """A revision chain cannot be traversed (cycle, dangling or forked link)."""

    def __init__(self, revision_id: str | None, reason: str) -> None:
        self.revision_id = revision_id
        self.reason = reason
        super().__init__(f"Malformed revision chain at '{revision_id}': {reason}")


class InvalidArgumentError(RatePlanResolutionError, ValueError):
    """Caller passed an argument the resolver cannot compare against."""

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid argument '{name}': {reason}")


# --- Validation Error ---


@dataclass(frozen=True)
class RatePlanError:
    """Expected failure reported in component outputs."""

    code: str
    message: str
    revision_id: str | None = None


# --- Revision Model ---


@dataclass(frozen=True)
class PlanRevision:
    """
    One time-bounded version of a billing rate plan.

    `previous_id` names the revision this one supersedes. It is resolved
    through a lookup, never held as an object reference.
    """

    id: str
    start: datetime
    end: datetime | None = None  # None means open-ended
    previous_id: str | None = None
    plan_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        for name, value in (("start", self.start), ("end", self.end)):
            if value is not None and (value.tzinfo is None or value.utcoffset() is None):
                raise InvalidArgumentError(name, "datetime must be timezone-aware")


class RevisionLookup(Protocol):
    """Anything that can resolve a revision id (PlanChain, dict, ...)."""

    def get(self, revision_id: str) -> PlanRevision | None:
        ...


@dataclass(frozen=True)
class PlanChain:
    """
    Immutable snapshot of a plan's revisions, newest first.

    Revisions only link backward; forward neighbours are found by the
    resolver's successor index built from iterating the chain.
    """

    plan_id: str
    revisions: tuple[PlanRevision, ...]
    _by_id: dict[str, PlanRevision] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        index = {revision.id: revision for revision in self.revisions}
        object.__setattr__(self, "_by_id", index)

    @classmethod
    def from_revisions(
        cls, plan_id: str, revisions: Iterable[PlanRevision]
    ) -> PlanChain:
        """Build a chain, ordering revisions newest first."""
        ordered = sorted(revisions, key=lambda r: r.start, reverse=True)
        return cls(plan_id=plan_id, revisions=tuple(ordered))

    @property
    def head(self) -> PlanRevision | None:
        """Newest revision, or None for an empty chain."""
        return self.revisions[0] if self.revisions else None

    @property
    def length(self) -> int:
        return len(self.revisions)

    def get(self, revision_id: str) -> PlanRevision | None:
        return self._by_id.get(revision_id)

    def by_id(self, revision_id: str) -> PlanRevision | None:
        return self._by_id.get(revision_id)

    def __iter__(self) -> Iterator[PlanRevision]:
        return iter(self.revisions)

    def __len__(self) -> int:
        return len(self.revisions)


# --- Configuration ---

Granularity = Literal["instant", "day"]


@dataclass(frozen=True)
class ResolutionConfig:
    """Interval boundary rules used when testing containment."""

    start_inclusive: bool = True
    end_inclusive: bool = True
    granularity: Granularity = "instant"


@dataclass(frozen=True)
class RatePlanConfig:
    """Rate plan configuration from rules."""

    timezone: str = "UTC"
    resolution: ResolutionConfig = field(default_factory=ResolutionConfig)
    cache_enabled: bool = True
    current_title: str = "Current rate plan"
    future_title: str = "Future rate plan"


# --- Links ---


@dataclass(frozen=True)
class PlanLink:
    """Current/future plan switcher entry (no URL, just the target)."""

    title: str
    revision_id: str
    is_active: bool
    css_class: str


# --- Input Models ---


@dataclass(frozen=True)
class ResolveCurrentInput:
    """Input for resolving the revision currently in effect."""

    plan_id: str
    revision_id: str | None = None  # defaults to the chain head
    at: datetime | None = None  # defaults to the time port's now


@dataclass(frozen=True)
class ResolveFutureInput:
    """Input for resolving the revision that supersedes a current one."""

    plan_id: str
    revision_id: str | None = None
    at: datetime | None = None


@dataclass(frozen=True)
class PlanStatusInput:
    """Input for the combined current/future status of a revision."""

    plan_id: str
    revision_id: str | None = None
    at: datetime | None = None


# --- Output Models ---


@dataclass(frozen=True)
class RevisionOutput:
    """Output for a single-revision resolution."""

    revision: PlanRevision | None
    evaluated_at: datetime | None = None
    errors: list[RatePlanError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class PlanStatusOutput:
    """Output for plan status."""

    revision: PlanRevision | None
    is_future: bool = False
    current: PlanRevision | None = None
    future: PlanRevision | None = None
    future_plan_start_date: datetime | None = None
    links: tuple[PlanLink, ...] = ()
    evaluated_at: datetime | None = None
    errors: list[RatePlanError] = field(default_factory=list)
    success: bool = True
