"""Recruitee payload models."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

SINGLE_LINE_KIND = "single_line"
DROPDOWN_KIND = "dropdown"


class _RecruiteeModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextValue(_RecruiteeModel):
    text: str = ""


class SelectedValue(_RecruiteeModel):
    value: str = ""


class SingleLineField(_RecruiteeModel):
    id: Optional[int] = None
    name: str
    kind: Literal["single_line"] = SINGLE_LINE_KIND
    values: list[TextValue] = Field(default_factory=list)


class DropdownField(_RecruiteeModel):
    id: Optional[int] = None
    name: str
    kind: Literal["dropdown"] = DROPDOWN_KIND
    values: list[SelectedValue] = Field(default_factory=list)


class OtherField(_RecruiteeModel):
    """Any field kind the bot does not read (dates, multi line, ...)."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str
    kind: str = "other"
    values: list[Any] = Field(default_factory=list)


def _field_kind(raw: Any) -> str:
    kind = raw.get("kind") if isinstance(raw, dict) else getattr(raw, "kind", None)
    if kind in (SINGLE_LINE_KIND, DROPDOWN_KIND):
        return kind
    return "other"


CandidateField = Annotated[
    Union[
        Annotated[SingleLineField, Tag(SINGLE_LINE_KIND)],
        Annotated[DropdownField, Tag(DROPDOWN_KIND)],
        Annotated[OtherField, Tag("other")],
    ],
    Discriminator(_field_kind),
]


class Placement(_RecruiteeModel):
    id: int
    offer_id: int
    stage_id: Optional[int] = None


class MinimalCandidate(_RecruiteeModel):
    id: int
    name: str = ""


class Candidate(_RecruiteeModel):
    id: int
    name: str = ""
    tags: list[str] = Field(default_factory=list)
    emails: list[str] = Field(default_factory=list)
    fields: list[CandidateField] = Field(default_factory=list)
    placements: list[Placement] = Field(default_factory=list)


class Task(_RecruiteeModel):
    id: int
    title: str = ""
    completed: bool = False
    due_date: Optional[date] = None
    created_at: datetime

    @field_validator("due_date", mode="before")
    @classmethod
    def _calendar_day(cls, value: Any) -> Any:
        # Recruitee sends due dates as timestamps; only the calendar day matters.
        if isinstance(value, str) and len(value) > 10:
            return value[:10]
        if isinstance(value, datetime):
            return value.date()
        return value


class CandidateReference(_RecruiteeModel):
    id: Optional[int] = None
    type: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TaskDetails(_RecruiteeModel):
    task: Optional[Task] = None
    references: list[CandidateReference] = Field(default_factory=list)


class Stage(_RecruiteeModel):
    id: int
    name: str


class PipelineTemplate(_RecruiteeModel):
    stages: list[Stage] = Field(default_factory=list)


class Offer(_RecruiteeModel):
    id: int
    title: str = ""
    offer_tags: list[str] = Field(default_factory=list)
    pipeline_template: Optional[PipelineTemplate] = None
