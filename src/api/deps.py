import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.plan_catalog import CachedPlanCatalog, InMemoryPlanCatalog
from src.adapters.time_zone import create_time_adapter
from src.components.rate_plans import (
    PlanCatalogPort,
    RatePlanConfig,
    TimePort,
    load_config_from_rules,
)
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(
            os.environ.get("RATE_PLANS_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        data_file = os.environ.get("RATE_PLANS_DATA_FILE")
        self.data_path = Path(data_file) if data_file else None


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_rate_plan_config(rules: Rules = Depends(get_rules)) -> RatePlanConfig:
    return load_config_from_rules(rules)


# --- Adapters ---
def _catalog_path(settings: Settings, rules: Rules) -> Path | None:
    if settings.data_path is not None:
        return settings.data_path
    if rules.rate_plans.catalog.data_file:
        return settings.rules_path.parent / rules.rate_plans.catalog.data_file
    return None


@lru_cache
def get_plan_catalog() -> PlanCatalogPort:
    """Shared catalog, loaded once per process."""
    settings = get_settings()
    rules = get_rules()

    path = _catalog_path(settings, rules)
    inner = InMemoryPlanCatalog.from_file(path) if path else InMemoryPlanCatalog()
    return CachedPlanCatalog(inner, enabled=rules.rate_plans.catalog.cache_enabled)


def get_time_port(config: RatePlanConfig = Depends(get_rate_plan_config)) -> TimePort:
    return create_time_adapter(config.timezone)
