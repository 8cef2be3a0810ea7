"""
Rate plan component - effective revision resolution.

Loads a plan's revision chain from the catalog port, picks the evaluation
instant and answers which revision is current or scheduled next.

Invariants:
- I1: Revisions are never mutated, chains are immutable snapshots
- I2: No current/future revision is a normal outcome, not an error
- I3: Malformed chains are reported, never looped over
- I4: Naive evaluation instants are rejected before traversal
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ._impl import (
    effective_revision,
    ensure_aware,
    future_plan_links,
    future_plan_start_date,
    is_future_at,
    resolve_current,
    resolve_future,
)
from .models import (
    MalformedChainError,
    PlanChain,
    PlanRevision,
    PlanStatusInput,
    PlanStatusOutput,
    RatePlanConfig,
    RatePlanError,
    ResolutionConfig,
    ResolveCurrentInput,
    ResolveFutureInput,
    RevisionOutput,
)
from .ports import PlanCatalogPort, TimePort

logger = logging.getLogger(__name__)


def _evaluation_instant(
    at: datetime | None,
    time_port: TimePort | None,
    config: RatePlanConfig,
) -> datetime:
    """Caller-supplied instant, or now from the time port."""
    if at is not None:
        ensure_aware(at, "at")
        return at

    if time_port is None:
        # Fallback when no port is injected
        from src.adapters.time_zone import create_time_adapter

        time_port = create_time_adapter(config.timezone)

    return time_port.to_zone(time_port.now_utc(), config.timezone)


def _load(
    plan_id: str,
    revision_id: str | None,
    catalog: PlanCatalogPort,
) -> tuple[PlanChain | None, PlanRevision | None, list[RatePlanError]]:
    """Load the chain and pick the requested revision (head by default)."""
    chain = catalog.load_chain(plan_id)
    if chain is None:
        logger.debug("Plan %s not found in catalog", plan_id)
        return None, None, [
            RatePlanError(code="plan_not_found", message=f"Plan '{plan_id}' not found")
        ]

    if revision_id is None:
        if chain.head is None:
            return chain, None, [
                RatePlanError(
                    code="revision_not_found",
                    message=f"Plan '{plan_id}' has no revisions",
                )
            ]
        return chain, chain.head, []

    revision = chain.by_id(revision_id)
    if revision is None:
        return chain, None, [
            RatePlanError(
                code="revision_not_found",
                message=f"Revision '{revision_id}' not found in plan '{plan_id}'",
                revision_id=revision_id,
            )
        ]

    return chain, revision, []


def _malformed(exc: MalformedChainError) -> list[RatePlanError]:
    return [
        RatePlanError(
            code="malformed_chain",
            message=str(exc),
            revision_id=exc.revision_id,
        )
    ]


# --- Component Entry Points ---


def run_resolve_current(
    inp: ResolveCurrentInput,
    *,
    catalog: PlanCatalogPort,
    time_port: TimePort | None = None,
    config: RatePlanConfig | None = None,
) -> RevisionOutput:
    """
    Resolve the revision currently in effect for a plan.

    With an explicit revision_id this follows the strict resolver contract:
    only a future revision resolves to an ancestor. Without one the whole
    chain is considered, so a current head resolves to itself.

    Args:
        inp: Plan id, optional revision id and evaluation instant.
        catalog: Plan catalog port.
        time_port: Optional time port for the default instant.
        config: Optional rate plan configuration.

    Returns:
        RevisionOutput with the current revision (or None) and errors.
    """
    config = config or RatePlanConfig()
    now = _evaluation_instant(inp.at, time_port, config)

    chain, revision, errors = _load(inp.plan_id, inp.revision_id, catalog)
    if chain is None or revision is None:
        return RevisionOutput(revision=None, evaluated_at=now, errors=errors, success=False)

    try:
        if inp.revision_id is None:
            current = effective_revision(chain, now, config.resolution)
        else:
            current = resolve_current(revision, now, chain, config.resolution)
    except MalformedChainError as e:
        return RevisionOutput(
            revision=None, evaluated_at=now, errors=_malformed(e), success=False
        )

    return RevisionOutput(revision=current, evaluated_at=now)


def run_resolve_future(
    inp: ResolveFutureInput,
    *,
    catalog: PlanCatalogPort,
    time_port: TimePort | None = None,
    config: RatePlanConfig | None = None,
) -> RevisionOutput:
    """
    Resolve the scheduled revision that supersedes a current one.

    Without a revision_id the chain's effective revision is used as the
    starting point.
    """
    config = config or RatePlanConfig()
    now = _evaluation_instant(inp.at, time_port, config)

    chain, revision, errors = _load(inp.plan_id, inp.revision_id, catalog)
    if chain is None or revision is None:
        return RevisionOutput(revision=None, evaluated_at=now, errors=errors, success=False)

    try:
        if inp.revision_id is None:
            revision = effective_revision(chain, now, config.resolution)
        future = (
            resolve_future(revision, now, chain, config.resolution)
            if revision is not None
            else None
        )
    except MalformedChainError as e:
        return RevisionOutput(
            revision=None, evaluated_at=now, errors=_malformed(e), success=False
        )

    return RevisionOutput(revision=future, evaluated_at=now)


def run_plan_status(
    inp: PlanStatusInput,
    *,
    catalog: PlanCatalogPort,
    time_port: TimePort | None = None,
    config: RatePlanConfig | None = None,
) -> PlanStatusOutput:
    """
    Combined current/future status for one revision.

    Includes the future plan start date and the current/future switcher
    links.
    """
    config = config or RatePlanConfig()
    now = _evaluation_instant(inp.at, time_port, config)

    chain, revision, errors = _load(inp.plan_id, inp.revision_id, catalog)
    if chain is None or revision is None:
        return PlanStatusOutput(
            revision=None, evaluated_at=now, errors=errors, success=False
        )

    resolution = config.resolution
    try:
        current = resolve_current(revision, now, chain, resolution)
        future = resolve_future(revision, now, chain, resolution)
        links = future_plan_links(
            revision,
            chain,
            now,
            resolution,
            current_title=config.current_title,
            future_title=config.future_title,
        )
        start_date = future_plan_start_date(revision, chain, now, resolution)
    except MalformedChainError as e:
        return PlanStatusOutput(
            revision=revision, evaluated_at=now, errors=_malformed(e), success=False
        )

    return PlanStatusOutput(
        revision=revision,
        is_future=is_future_at(revision, now, resolution),
        current=current,
        future=future,
        future_plan_start_date=start_date,
        links=links,
        evaluated_at=now,
    )


def run(
    input_data: ResolveCurrentInput | ResolveFutureInput | PlanStatusInput,
    *,
    catalog: PlanCatalogPort,
    time_port: TimePort | None = None,
    config: RatePlanConfig | None = None,
) -> RevisionOutput | PlanStatusOutput:
    """
    Run rate plan operation based on input type.

    Main entry point following the atomic component pattern.
    """
    if isinstance(input_data, ResolveCurrentInput):
        return run_resolve_current(
            input_data, catalog=catalog, time_port=time_port, config=config
        )

    if isinstance(input_data, ResolveFutureInput):
        return run_resolve_future(
            input_data, catalog=catalog, time_port=time_port, config=config
        )

    if isinstance(input_data, PlanStatusInput):
        return run_plan_status(
            input_data, catalog=catalog, time_port=time_port, config=config
        )

    raise TypeError(f"Unknown input type: {type(input_data)}")


# --- Configuration Loader ---


def load_config_from_rules(rules: Any) -> RatePlanConfig:
    """
    Load RatePlanConfig from rules.yaml.

    Accepts the validated Rules model or the raw parsed dictionary.

    Args:
        rules: Parsed rules

    Returns:
        RatePlanConfig instance
    """
    if hasattr(rules, "model_dump"):
        rules = rules.model_dump()

    rate_plans = rules.get("rate_plans") or {}
    resolution = rate_plans.get("resolution") or {}
    catalog = rate_plans.get("catalog") or {}
    links = rate_plans.get("links") or {}

    return RatePlanConfig(
        timezone=rate_plans.get("timezone", "UTC"),
        resolution=ResolutionConfig(
            start_inclusive=resolution.get("start_inclusive", True),
            end_inclusive=resolution.get("end_inclusive", True),
            granularity=resolution.get("granularity", "instant"),
        ),
        cache_enabled=catalog.get("cache_enabled", True),
        current_title=links.get("current_title", "Current rate plan"),
        future_title=links.get("future_title", "Future rate plan"),
    )
