# schemas.py — Request/response models shared by the routers
import re
from datetime import date, datetime
from typing import Annotated, Optional, List
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, StringConstraints, model_validator

from models import ShareMode, Workspace, Stage, Task, Project, Version, Tag, TagShare

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
DEFAULT_TAG_COLOR = "#808080"


def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() if isinstance(dt, (datetime, date)) else str(dt)


def id_str(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _check_color(v: str) -> str:
    v = v.strip()
    if not HEX_COLOR.match(v):
        raise ValueError("Invalid hex color code (e.g., #RRGGBB)")
    return v


Name100 = Annotated[str, StringConstraints(min_length=1, max_length=100), AfterValidator(_strip_required)]
Name255 = Annotated[str, StringConstraints(min_length=1, max_length=255), AfterValidator(_strip_required)]
Title500 = Annotated[str, StringConstraints(min_length=1, max_length=500), AfterValidator(_strip_required)]
HexColor = Annotated[str, AfterValidator(_check_color)]


class _PartialUpdate(BaseModel):
    """Update bodies must carry at least one field"""

    @model_validator(mode="after")
    def _not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for an update")
        return self


# ============================================================
# WORKSPACES
# ============================================================

class WorkspaceCreate(BaseModel):
    name: Name100


class WorkspaceUpdate(BaseModel):
    name: Name100


class SharingRequest(BaseModel):
    share_mode: ShareMode = ShareMode.READ_ONLY


class SharingOut(BaseModel):
    workspace_id: str
    share_token: str
    share_mode: str
    shareable_link: str


class WorkspaceOut(BaseModel):
    id: str
    name: str
    owner_id: str
    is_shared_publicly: bool
    public_share_mode: Optional[str] = None
    share_token: Optional[str] = None
    created_at: Optional[str] = None


def workspace_out(ws: Workspace, include_token: bool = True) -> WorkspaceOut:
    return WorkspaceOut(
        id=ws.id,
        name=ws.name,
        owner_id=ws.owner_id,
        is_shared_publicly=bool(ws.is_shared_publicly),
        public_share_mode=ws.public_share_mode,
        share_token=ws.share_token if include_token else None,
        created_at=_ts(ws.created_at),
    )


# ============================================================
# STAGES
# ============================================================

class StageCreate(BaseModel):
    title: Name100


class StageUpdate(_PartialUpdate):
    title: Optional[Name100] = None
    order: Optional[int] = Field(None, ge=0)


class StageOut(BaseModel):
    id: str
    workspace_id: str
    title: str
    order: int


def stage_out(s: Stage) -> StageOut:
    return StageOut(id=s.id, workspace_id=s.workspace_id, title=s.title, order=s.order)


# ============================================================
# TASKS
# ============================================================

class TaskCreate(BaseModel):
    stage_id: UUID
    title: Title500
    description: Optional[str] = None
    due_date: Optional[date] = None
    project_id: Optional[UUID] = None
    version_id: Optional[UUID] = None


class TaskUpdate(_PartialUpdate):
    title: Optional[Title500] = None
    description: Optional[str] = None
    stage_id: Optional[UUID] = None
    order: Optional[int] = Field(None, ge=0)
    due_date: Optional[date] = None
    is_archived: Optional[bool] = None
    project_id: Optional[UUID] = None
    version_id: Optional[UUID] = None


class TaskOut(BaseModel):
    id: str
    workspace_id: str
    stage_id: str
    title: str
    description: Optional[str] = None
    order: int = 0
    due_date: Optional[str] = None
    is_archived: bool = False
    project_id: Optional[str] = None
    version_id: Optional[str] = None
    created_at: Optional[str] = None


def task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=t.id,
        workspace_id=t.workspace_id,
        stage_id=t.stage_id,
        title=t.title,
        description=t.description,
        order=t.order or 0,
        due_date=_ts(t.due_date),
        is_archived=bool(t.is_archived),
        project_id=t.project_id,
        version_id=t.version_id,
        created_at=_ts(t.created_at),
    )


class TagAssign(BaseModel):
    tag_id: UUID


# ============================================================
# BOARD VIEW
# ============================================================

class ProjectRef(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class VersionRef(BaseModel):
    id: str
    name: str


class BoardOut(BaseModel):
    workspace: WorkspaceOut
    access: str
    stages: List[StageOut] = []
    tasks: List[TaskOut] = []
    projects: List[ProjectRef] = []
    versions: List[VersionRef] = []


# ============================================================
# TAGS
# ============================================================

class TagCreate(BaseModel):
    name: Name100
    color: HexColor = DEFAULT_TAG_COLOR


class TagUpdate(_PartialUpdate):
    name: Optional[Name100] = None
    color: Optional[HexColor] = None


class TagOut(BaseModel):
    id: str
    owner_id: str
    name: str
    color: Optional[str] = None
    is_global: bool = False
    created_at: Optional[str] = None


def tag_out(t: Tag) -> TagOut:
    return TagOut(
        id=t.id,
        owner_id=t.owner_id,
        name=t.name,
        color=t.color,
        is_global=bool(t.is_global),
        created_at=_ts(t.created_at),
    )


class TagShareCreate(BaseModel):
    workspace_id: UUID


class TagShareOut(BaseModel):
    tag_id: str
    workspace_id: str
    shared_by_id: Optional[str] = None
    shared_at: Optional[str] = None


def tag_share_out(s: TagShare) -> TagShareOut:
    return TagShareOut(
        tag_id=s.tag_id,
        workspace_id=s.workspace_id,
        shared_by_id=s.shared_by_id,
        shared_at=_ts(s.shared_at),
    )


# ============================================================
# PROJECTS & VERSIONS
# ============================================================

class ProjectCreate(BaseModel):
    name: Name255
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[HexColor] = None
    start_date: Optional[datetime] = None
    finish_date: Optional[datetime] = None


class ProjectUpdate(_PartialUpdate):
    name: Optional[Name255] = None
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[HexColor] = None
    start_date: Optional[datetime] = None
    finish_date: Optional[datetime] = None


class ProjectOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    start_date: Optional[str] = None
    finish_date: Optional[str] = None
    created_at: Optional[str] = None


def project_out(p: Project) -> ProjectOut:
    return ProjectOut(
        id=p.id, name=p.name, description=p.description, color=p.color,
        start_date=_ts(p.start_date), finish_date=_ts(p.finish_date),
        created_at=_ts(p.created_at),
    )


class VersionCreate(BaseModel):
    name: Name255
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[str] = Field(None, max_length=50)
    start_date: Optional[datetime] = None
    release_date: Optional[datetime] = None
    project_id: Optional[UUID] = None


class VersionUpdate(_PartialUpdate):
    name: Optional[Name255] = None
    description: Optional[str] = Field(None, max_length=1000)
    status: Optional[str] = Field(None, max_length=50)
    start_date: Optional[datetime] = None
    release_date: Optional[datetime] = None
    project_id: Optional[UUID] = None


class VersionOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[str] = None
    release_date: Optional[str] = None
    project_id: Optional[str] = None
    created_at: Optional[str] = None


def version_out(v: Version) -> VersionOut:
    return VersionOut(
        id=v.id, name=v.name, description=v.description, status=v.status,
        start_date=_ts(v.start_date), release_date=_ts(v.release_date),
        project_id=v.project_id, created_at=_ts(v.created_at),
    )
