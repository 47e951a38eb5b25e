from __future__ import annotations

from datetime import date
from typing import Optional, Union

from pydantic import BaseModel, Field

# GitLab hands out numeric ids, tests and callers may use path-like strings.
# The client never interprets them.
ProjectId = Union[int, str]

IMPORT_STARTED = "started"
IMPORT_FINISHED = "finished"


class Project(BaseModel):
    name: str
    id: ProjectId
    web_url: str = ""


class Branch(BaseModel):
    name: str
    protected: bool = False
    default: bool = False


class ImportStatus(BaseModel):
    # 'none' | 'scheduled' | 'started' | 'finished' | 'failed', passed through as-is
    import_status: str


class User(BaseModel):
    id: int
    username: str
    name: str = ""


class Issue(BaseModel):
    title: str
    assignee: Optional[User] = None
    web_url: str = ""


class IssueTemplateValues(BaseModel):
    title: str
    applicant_name: str


class AssignHomeworkRequest(BaseModel):
    template_name: str = Field(description="Exact name of the template project")
    username: str = Field(description="GitLab username of the applicant")
    applicant_name: str
    due_date: date
    title: Optional[str] = None  # issue title, defaults to the template name
    new_name: Optional[str] = None  # fork name, defaults to '<template>-<username>'


class AssignHomeworkResponse(BaseModel):
    project: Project
    issue: Issue
