"""
Rate plan component.

Public API for resolving which revision of a rate plan is in effect.
"""

from ._impl import (
    DEFAULT_CONFIG,
    contains,
    effective_revision,
    ensure_aware,
    future_plan_links,
    future_plan_start_date,
    is_future,
    is_future_at,
    resolve_current,
    resolve_future,
)
from .component import (
    load_config_from_rules,
    run,
    run_plan_status,
    run_resolve_current,
    run_resolve_future,
)
from .models import (
    InvalidArgumentError,
    MalformedChainError,
    PlanChain,
    PlanLink,
    PlanRevision,
    PlanStatusInput,
    PlanStatusOutput,
    RatePlanConfig,
    RatePlanError,
    RatePlanResolutionError,
    ResolutionConfig,
    ResolveCurrentInput,
    ResolveFutureInput,
    RevisionLookup,
    RevisionOutput,
)
from .ports import PlanCatalogPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_plan_status",
    "run_resolve_current",
    "run_resolve_future",
    "load_config_from_rules",
    # Resolver
    "DEFAULT_CONFIG",
    "contains",
    "effective_revision",
    "ensure_aware",
    "future_plan_links",
    "future_plan_start_date",
    "is_future",
    "is_future_at",
    "resolve_current",
    "resolve_future",
    # Models
    "PlanChain",
    "PlanLink",
    "PlanRevision",
    "RatePlanConfig",
    "ResolutionConfig",
    "RevisionLookup",
    # Input models
    "PlanStatusInput",
    "ResolveCurrentInput",
    "ResolveFutureInput",
    # Output models
    "PlanStatusOutput",
    "RatePlanError",
    "RevisionOutput",
    # Errors
    "InvalidArgumentError",
    "MalformedChainError",
    "RatePlanResolutionError",
    # Ports
    "PlanCatalogPort",
    "TimePort",
]
