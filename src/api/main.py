import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from src.api.deps import get_plan_catalog, get_rules

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Load rules and the plan catalog on startup (fail-fast)
    try:
        rules = get_rules()
        get_plan_catalog()
        logger.info("Rate plan rules loaded (version %s)", rules.project.rules_version)
    except (FileNotFoundError, ValueError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)

    yield


app = FastAPI(
    title="Rate Plan Revisions API",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- Routers ---
from src.api.routes import rate_plans  # noqa: E402

app.include_router(rate_plans.router, prefix="/api/rate-plans", tags=["Rate Plans"])


@app.get("/health")
def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    return {"status": "ok", "service": "api"}
