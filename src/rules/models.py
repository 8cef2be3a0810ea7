from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str
    required_sections: list[str] = []

class ResolutionRules(BaseModel):
    start_inclusive: bool = True
    end_inclusive: bool = True
    granularity: Literal["instant", "day"] = "instant"

class CatalogRules(BaseModel):
    cache_enabled: bool = True
    data_file: str | None = None  # relative to the rules file

class LinkRules(BaseModel):
    current_title: str = "Current rate plan"
    future_title: str = "Future rate plan"

class RatePlanRules(BaseModel):
    timezone: str = "UTC"
    resolution: ResolutionRules = Field(default_factory=ResolutionRules)
    catalog: CatalogRules = Field(default_factory=CatalogRules)
    links: LinkRules = Field(default_factory=LinkRules)

class Rules(BaseModel):
    project: ProjectRules
    rate_plans: RatePlanRules = Field(default_factory=RatePlanRules)
