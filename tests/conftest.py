from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.plan_catalog import InMemoryPlanCatalog
from src.adapters.time_zone import FrozenTimeAdapter
from src.components.rate_plans import PlanRevision

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=UTC)


@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def standard_revisions() -> list[PlanRevision]:
    """
    Three revisions of one plan: a past one, a current one running to the
    end of 2030, and a scheduled one starting 2031.
    """
    return [
        PlanRevision(
            id="standard-2023",
            start=utc(2023, 1, 1),
            end=utc(2023, 12, 31, 23),
            plan_id="standard",
        ),
        PlanRevision(
            id="standard-2024",
            start=utc(2024, 1, 1),
            end=utc(2030, 12, 31, 23),
            previous_id="standard-2023",
            plan_id="standard",
        ),
        PlanRevision(
            id="standard-2031",
            start=utc(2031, 1, 1),
            previous_id="standard-2024",
            plan_id="standard",
        ),
    ]


@pytest.fixture
def cyclic_revisions() -> list[PlanRevision]:
    """Third predecessor points back at the newest revision."""
    return [
        PlanRevision(id="loop-a", start=utc(2031, 1, 1), previous_id="loop-b"),
        PlanRevision(
            id="loop-b", start=utc(2022, 1, 1), end=utc(2022, 6, 1), previous_id="loop-c"
        ),
        PlanRevision(
            id="loop-c", start=utc(2021, 1, 1), end=utc(2021, 6, 1), previous_id="loop-a"
        ),
    ]


@pytest.fixture
def catalog(
    standard_revisions: list[PlanRevision],
    cyclic_revisions: list[PlanRevision],
) -> InMemoryPlanCatalog:
    """Catalog with a well-formed plan and a cyclic one."""
    catalog = InMemoryPlanCatalog()
    catalog.register("standard", standard_revisions)
    catalog.register("loop", cyclic_revisions)
    return catalog


@pytest.fixture
def frozen_time() -> FrozenTimeAdapter:
    """Frozen at 2025-06-01 12:00 UTC, inside standard-2024."""
    return FrozenTimeAdapter(utc(2025, 6, 1, 12))
