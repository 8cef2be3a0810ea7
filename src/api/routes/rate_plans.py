"""
Rate Plan Routes.

Read-only JSON endpoints for revision resolution.

Key behaviors:
- current: revision in effect at `at` (default: now)
- future: scheduled revision superseding the current one
- status: current/future pair, future start date and switcher links
- Unknown plan or revision -> 404, malformed chain -> 409,
  naive `at` -> 422
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.deps import get_plan_catalog, get_rate_plan_config, get_time_port
from src.api.schemas import (
    PlanLinkModel,
    PlanStatusResponse,
    RevisionModel,
    RevisionResponse,
)
from src.components.rate_plans import (
    InvalidArgumentError,
    PlanCatalogPort,
    PlanStatusInput,
    RatePlanConfig,
    RatePlanError,
    ResolveCurrentInput,
    ResolveFutureInput,
    TimePort,
    run_plan_status,
    run_resolve_current,
    run_resolve_future,
)

router = APIRouter()

ERROR_STATUS = {
    "plan_not_found": status.HTTP_404_NOT_FOUND,
    "revision_not_found": status.HTTP_404_NOT_FOUND,
    "malformed_chain": status.HTTP_409_CONFLICT,
}


def _raise_for_errors(errors: list[RatePlanError]) -> None:
    if not errors:
        return
    first = errors[0]
    raise HTTPException(
        status_code=ERROR_STATUS.get(first.code, status.HTTP_400_BAD_REQUEST),
        detail={"code": first.code, "message": first.message},
    )


def _invalid_argument(e: InvalidArgumentError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"code": "invalid_argument", "message": str(e)},
    )


# --- Routes ---


@router.get("/{plan_id}/current", response_model=RevisionResponse)
def get_current_revision(
    plan_id: str,
    revision_id: str | None = Query(None),
    at: datetime | None = Query(None, description="Timezone-aware ISO 8601 instant"),
    catalog: PlanCatalogPort = Depends(get_plan_catalog),
    time_port: TimePort = Depends(get_time_port),
    config: RatePlanConfig = Depends(get_rate_plan_config),
) -> RevisionResponse:
    """Revision currently in effect for a plan."""
    try:
        result = run_resolve_current(
            ResolveCurrentInput(plan_id=plan_id, revision_id=revision_id, at=at),
            catalog=catalog,
            time_port=time_port,
            config=config,
        )
    except InvalidArgumentError as e:
        raise _invalid_argument(e) from e

    _raise_for_errors(result.errors)
    assert result.evaluated_at is not None

    return RevisionResponse(
        plan_id=plan_id,
        evaluated_at=result.evaluated_at,
        revision=RevisionModel.from_revision(result.revision),
    )


@router.get("/{plan_id}/future", response_model=RevisionResponse)
def get_future_revision(
    plan_id: str,
    revision_id: str | None = Query(None),
    at: datetime | None = Query(None, description="Timezone-aware ISO 8601 instant"),
    catalog: PlanCatalogPort = Depends(get_plan_catalog),
    time_port: TimePort = Depends(get_time_port),
    config: RatePlanConfig = Depends(get_rate_plan_config),
) -> RevisionResponse:
    """Scheduled revision that will supersede the current one."""
    try:
        result = run_resolve_future(
            ResolveFutureInput(plan_id=plan_id, revision_id=revision_id, at=at),
            catalog=catalog,
            time_port=time_port,
            config=config,
        )
    except InvalidArgumentError as e:
        raise _invalid_argument(e) from e

    _raise_for_errors(result.errors)
    assert result.evaluated_at is not None

    return RevisionResponse(
        plan_id=plan_id,
        evaluated_at=result.evaluated_at,
        revision=RevisionModel.from_revision(result.revision),
    )


@router.get("/{plan_id}/status", response_model=PlanStatusResponse)
def get_plan_status(
    plan_id: str,
    revision_id: str | None = Query(None),
    at: datetime | None = Query(None, description="Timezone-aware ISO 8601 instant"),
    catalog: PlanCatalogPort = Depends(get_plan_catalog),
    time_port: TimePort = Depends(get_time_port),
    config: RatePlanConfig = Depends(get_rate_plan_config),
) -> PlanStatusResponse:
    """Current/future status of a revision (default: newest)."""
    try:
        result = run_plan_status(
            PlanStatusInput(plan_id=plan_id, revision_id=revision_id, at=at),
            catalog=catalog,
            time_port=time_port,
            config=config,
        )
    except InvalidArgumentError as e:
        raise _invalid_argument(e) from e

    _raise_for_errors(result.errors)
    assert result.revision is not None and result.evaluated_at is not None

    return PlanStatusResponse(
        plan_id=plan_id,
        evaluated_at=result.evaluated_at,
        revision=RevisionModel.model_validate(result.revision),
        is_future=result.is_future,
        current=RevisionModel.from_revision(result.current),
        future=RevisionModel.from_revision(result.future),
        future_plan_start_date=result.future_plan_start_date,
        links=[PlanLinkModel.from_link(link) for link in result.links],
    )
