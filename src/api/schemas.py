from datetime import datetime

from pydantic import BaseModel, ConfigDict

from src.components.rate_plans import PlanLink, PlanRevision


# --- Revisions ---
class RevisionModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    plan_id: str | None = None
    name: str | None = None
    start: datetime
    end: datetime | None = None
    previous_id: str | None = None

    @classmethod
    def from_revision(cls, revision: PlanRevision | None) -> "RevisionModel | None":
        return cls.model_validate(revision) if revision is not None else None


class PlanLinkModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    title: str
    revision_id: str
    is_active: bool
    css_class: str

    @classmethod
    def from_link(cls, link: PlanLink) -> "PlanLinkModel":
        return cls.model_validate(link)


# --- Responses ---
class RevisionResponse(BaseModel):
    plan_id: str
    evaluated_at: datetime
    revision: RevisionModel | None = None


class PlanStatusResponse(BaseModel):
    plan_id: str
    evaluated_at: datetime
    revision: RevisionModel
    is_future: bool
    current: RevisionModel | None = None
    future: RevisionModel | None = None
    future_plan_start_date: datetime | None = None
    links: list[PlanLinkModel] = []
