"""
Revision resolution for rate plan chains.

Given a revision and its backward-linked chain of predecessors, decides
which revision is in effect at an evaluation instant.

Key behaviors:
- A revision is "future" when the evaluation instant is before its start
- Current revision lookup walks predecessors, nearest ancestor wins
- Future revision lookup walks a successor index built from the chain
- Gaps resolve to None, never an error
- Cycles, dangling predecessors and forked successors raise MalformedChainError
- Naive evaluation instants raise InvalidArgumentError before any traversal
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from .models import (
    InvalidArgumentError,
    MalformedChainError,
    PlanChain,
    PlanLink,
    PlanRevision,
    ResolutionConfig,
    RevisionLookup,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = ResolutionConfig()

CURRENT_LINK_CLASS = "rate-plan-current-link"
FUTURE_LINK_CLASS = "rate-plan-future-link"


# --- Helpers ---


def ensure_aware(value: datetime, name: str = "now") -> None:
    """Reject naive datetimes, comparisons against them are undefined."""
    if value.tzinfo is None or value.utcoffset() is None:
        raise InvalidArgumentError(name, "datetime must be timezone-aware")


def _reference_instant(
    now: datetime,
    anchor: PlanRevision,
    config: ResolutionConfig,
) -> datetime:
    """Evaluation instant after applying the configured granularity."""
    if config.granularity == "day":
        local = now.astimezone(anchor.start.tzinfo)
        return local.replace(hour=0, minute=0, second=0, microsecond=0)
    return now


def _contains(
    revision: PlanRevision,
    instant: datetime,
    config: ResolutionConfig,
) -> bool:
    if config.start_inclusive:
        started = revision.start <= instant
    else:
        started = revision.start < instant

    if revision.end is None:
        return started

    if config.end_inclusive:
        return started and instant <= revision.end
    return started and instant < revision.end


def _previous(revision: PlanRevision, lookup: RevisionLookup) -> PlanRevision | None:
    if revision.previous_id is None:
        return None

    previous = lookup.get(revision.previous_id)
    if previous is None:
        logger.warning(
            "Revision %s points at unknown predecessor %s",
            revision.id,
            revision.previous_id,
        )
        raise MalformedChainError(
            revision.id, f"unknown predecessor '{revision.previous_id}'"
        )
    return previous


def _successor_index(chain: Iterable[PlanRevision]) -> dict[str, PlanRevision]:
    """Map predecessor id -> the revision that supersedes it."""
    index: dict[str, PlanRevision] = {}
    for revision in chain:
        if revision.previous_id is None:
            continue
        existing = index.get(revision.previous_id)
        if existing is not None and existing.id != revision.id:
            logger.warning(
                "Revisions %s and %s both supersede %s",
                existing.id,
                revision.id,
                revision.previous_id,
            )
            raise MalformedChainError(
                revision.previous_id,
                f"superseded by both '{existing.id}' and '{revision.id}'",
            )
        index[revision.previous_id] = revision
    return index


# --- Pure Functions ---


def is_future(revision: PlanRevision, now: datetime) -> bool:
    """True iff `now` is strictly before the revision's start."""
    ensure_aware(now)
    return now < revision.start


def is_future_at(
    revision: PlanRevision,
    now: datetime,
    config: ResolutionConfig | None = None,
) -> bool:
    """is_future against the granularity-adjusted instant the walks use."""
    config = config or DEFAULT_CONFIG
    ensure_aware(now)
    return _reference_instant(now, revision, config) < revision.start


def contains(
    revision: PlanRevision,
    now: datetime,
    config: ResolutionConfig | None = None,
) -> bool:
    """
    Check whether the revision's interval contains `now`.

    An open-ended revision (end is None) has not ended yet. Endpoint
    inclusivity follows `config`; granularity is not applied here.
    """
    ensure_aware(now)
    return _contains(revision, now, config or DEFAULT_CONFIG)


def resolve_current(
    revision: PlanRevision,
    now: datetime,
    lookup: RevisionLookup,
    config: ResolutionConfig | None = None,
) -> PlanRevision | None:
    """
    Find the revision in effect while `revision` is still in the future.

    Returns None when `revision` is not a future revision, or when no
    ancestor's interval contains `now`. On overlapping ancestors the
    nearest one wins.

    Args:
        revision: Starting revision (usually the newest of a chain)
        now: Timezone-aware evaluation instant
        lookup: Resolves `previous_id` links (PlanChain or mapping)
        config: Boundary and granularity rules

    Returns:
        The current ancestor revision, or None

    Raises:
        InvalidArgumentError: `now` is naive
        MalformedChainError: the predecessor walk loops or dangles
    """
    config = config or DEFAULT_CONFIG
    ensure_aware(now)
    if not is_future_at(revision, now, config):
        return None
    reference = _reference_instant(now, revision, config)

    visited = {revision.id}
    candidate = _previous(revision, lookup)

    while candidate is not None:
        if candidate.id in visited:
            logger.warning(
                "Predecessor cycle through %s starting at %s",
                candidate.id,
                revision.id,
            )
            raise MalformedChainError(candidate.id, "predecessor cycle")
        visited.add(candidate.id)

        if _contains(candidate, reference, config):
            logger.debug("Revision %s is current for %s", candidate.id, revision.id)
            return candidate

        candidate = _previous(candidate, lookup)

    logger.debug("No current revision for %s at %s", revision.id, reference)
    return None


def resolve_future(
    revision: PlanRevision,
    now: datetime,
    chain: Iterable[PlanRevision],
    config: ResolutionConfig | None = None,
) -> PlanRevision | None:
    """
    Find the nearest revision that supersedes `revision` and has not started.

    Revisions only link backward, so `chain` must hold the successors; an
    index keyed by predecessor id is built from it. Returns None when
    `revision` is not current at `now` or nothing future supersedes it.
    """
    config = config or DEFAULT_CONFIG
    ensure_aware(now)
    reference = _reference_instant(now, revision, config)

    if not _contains(revision, reference, config):
        return None

    successors = _successor_index(chain)
    visited = {revision.id}
    candidate = successors.get(revision.id)

    while candidate is not None:
        if candidate.id in visited:
            logger.warning(
                "Successor cycle through %s starting at %s",
                candidate.id,
                revision.id,
            )
            raise MalformedChainError(candidate.id, "successor cycle")
        visited.add(candidate.id)

        if reference < candidate.start:
            return candidate

        candidate = successors.get(candidate.id)

    return None


def effective_revision(
    chain: PlanChain,
    now: datetime,
    config: ResolutionConfig | None = None,
) -> PlanRevision | None:
    """Revision of the whole chain in effect at `now`, starting at the head."""
    config = config or DEFAULT_CONFIG
    ensure_aware(now)

    head = chain.head
    if head is None:
        return None

    if _contains(head, _reference_instant(now, head, config), config):
        return head

    return resolve_current(head, now, chain, config)


def future_plan_start_date(
    revision: PlanRevision,
    chain: Iterable[PlanRevision],
    now: datetime,
    config: ResolutionConfig | None = None,
) -> datetime | None:
    """Start of the revision that will supersede `revision`, if scheduled."""
    future = resolve_future(revision, now, chain, config)
    return future.start if future else None


def future_plan_links(
    revision: PlanRevision,
    chain: PlanChain,
    now: datetime,
    config: ResolutionConfig | None = None,
    current_title: str = "Current rate plan",
    future_title: str = "Future rate plan",
) -> tuple[PlanLink, ...]:
    """
    Current/future switcher links for a revision.

    A future revision with a current ancestor links back to that ancestor.
    A current revision with a scheduled successor links forward to it.
    Anything else gets no links.
    """
    config = config or DEFAULT_CONFIG

    current = resolve_current(revision, now, chain, config)
    if current is not None:
        return (
            PlanLink(current_title, current.id, False, CURRENT_LINK_CLASS),
            PlanLink(future_title, revision.id, True, FUTURE_LINK_CLASS),
        )

    future = resolve_future(revision, now, chain, config)
    if future is not None:
        return (
            PlanLink(current_title, revision.id, True, CURRENT_LINK_CLASS),
            PlanLink(future_title, future.id, False, FUTURE_LINK_CLASS),
        )

    return ()
