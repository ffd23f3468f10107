"""GitLab payload models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _GitlabModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GitlabUser(_GitlabModel):
    id: int
    username: str
    name: str = ""


class GitlabProject(_GitlabModel):
    id: int
    name: str
    web_url: str
    path_with_namespace: Optional[str] = None
    default_branch: Optional[str] = None


class Issue(_GitlabModel):
    id: int
    iid: Optional[int] = None
    title: str = ""
    web_url: str


class Branch(_GitlabModel):
    name: str
    protected: bool = False
    default: bool = False


class ImportStatus(_GitlabModel):
    import_status: str
    import_error: Optional[str] = None


class EventProject(_GitlabModel):
    id: int
    web_url: str


class IssueAttributes(_GitlabModel):
    action: Optional[str] = None
    url: Optional[str] = None


class IssueEvent(_GitlabModel):
    """Body of an issue-events webhook delivery."""

    object_kind: str
    project: EventProject
    object_attributes: IssueAttributes = Field(default_factory=IssueAttributes)
