# routers/workspaces.py — Workspaces, board view and public sharing
import os
import uuid
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user, principal_id, CurrentUser
from database import get_db_session
from models import Workspace, Stage, Task, Project, Version
from policy import AccessLevel, is_owner, can_delete_workspace, can_manage_sharing
from access import Operation, require_workspace, visible_tags, shared_tag_ids
from schemas import (
    WorkspaceCreate, WorkspaceUpdate, WorkspaceOut, SharingRequest, SharingOut,
    BoardOut, ProjectRef, VersionRef, TagOut,
    workspace_out, stage_out, task_out, tag_out,
)

router = APIRouter(prefix="/api/v1/workspaces", tags=["Workspaces"])
logger = logging.getLogger("boardshare.workspaces")
sharing_logger = logging.getLogger("boardshare.sharing")

PUBLIC_APP_URL = os.getenv("PUBLIC_APP_URL", "").rstrip("/")

# Stages every new workspace starts with
DEFAULT_STAGES = ["To Do", "In Progress", "Done"]


# ============================================================
# HELPERS
# ============================================================

def _shareable_link(request: Request, token: str) -> str:
    base = PUBLIC_APP_URL or str(request.base_url).rstrip("/")
    return f"{base}/shared-workspace/{token}"


def _require_owner(user_id: Optional[str], workspace: Workspace, action: str) -> None:
    # Callers have already passed the read check, so the workspace is known to them
    if not is_owner(user_id, workspace):
        raise HTTPException(status_code=403, detail=f"Only the workspace owner can {action}")


async def load_board(db: AsyncSession, workspace: Workspace, level: AccessLevel, viewer: Optional[str]) -> BoardOut:
    """Stages, live tasks and the projects/versions those tasks point at."""
    stages = (await db.execute(
        select(Stage).where(Stage.workspace_id == workspace.id).order_by(Stage.order.asc())
    )).scalars().all()
    tasks = (await db.execute(
        select(Task)
        .where(Task.workspace_id == workspace.id, Task.is_archived.is_(False))
        .order_by(Task.order.asc(), Task.created_at.asc())
    )).scalars().all()

    project_ids = {t.project_id for t in tasks if t.project_id}
    version_ids = {t.version_id for t in tasks if t.version_id}
    projects, versions = [], []
    if project_ids:
        rows = await db.execute(
            select(Project.id, Project.name, Project.color).where(Project.id.in_(project_ids))
        )
        projects = [ProjectRef(id=r.id, name=r.name, color=r.color) for r in rows]
    if version_ids:
        rows = await db.execute(select(Version.id, Version.name).where(Version.id.in_(version_ids)))
        versions = [VersionRef(id=r.id, name=r.name) for r in rows]

    return BoardOut(
        workspace=workspace_out(workspace, include_token=is_owner(viewer, workspace)),
        access=level.value,
        stages=[stage_out(s) for s in stages],
        tasks=[task_out(t) for t in tasks],
        projects=projects,
        versions=versions,
    )


# ============================================================
# WORKSPACE ENDPOINTS
# ============================================================

@router.get("", response_model=List[WorkspaceOut])
async def list_workspaces(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """List workspaces owned by the caller, newest first"""
    stmt = (
        select(Workspace)
        .where(Workspace.owner_id == user.id)
        .order_by(Workspace.created_at.desc())
    )
    result = await db.execute(stmt)
    return [workspace_out(w) for w in result.scalars().all()]


@router.post("", response_model=WorkspaceOut, status_code=201)
async def create_workspace(
    data: WorkspaceCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a workspace together with its default stages"""
    workspace = Workspace(name=data.name, owner_id=user.id)
    db.add(workspace)
    await db.flush()

    for position, title in enumerate(DEFAULT_STAGES):
        db.add(Stage(workspace_id=workspace.id, title=title, order=position))

    await db.commit()
    await db.refresh(workspace)
    logger.info(f"Workspace {workspace.id} created by {user.id}")
    return workspace_out(workspace)


@router.get("/{workspace_id}", response_model=BoardOut)
async def get_workspace_board(
    workspace_id: UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Board view for anyone the workspace is visible to"""
    pid = principal_id(user)
    workspace, level = await require_workspace(db, pid, str(workspace_id), Operation.READ)
    return await load_board(db, workspace, level, pid)


@router.patch("/{workspace_id}", response_model=WorkspaceOut)
async def rename_workspace(
    workspace_id: UUID,
    data: WorkspaceUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    workspace, _ = await require_workspace(db, user.id, str(workspace_id), Operation.READ)
    _require_owner(user.id, workspace, "rename it")

    workspace.name = data.name
    await db.commit()
    await db.refresh(workspace)
    return workspace_out(workspace)


@router.delete("/{workspace_id}", status_code=204)
async def delete_workspace(
    workspace_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a workspace with its stages, tasks and tag shares (owner only)"""
    workspace, _ = await require_workspace(db, user.id, str(workspace_id), Operation.READ)
    if not can_delete_workspace(user.id, workspace):
        raise HTTPException(status_code=403, detail="Only the workspace owner can delete it")

    await db.delete(workspace)
    await db.commit()
    logger.info(f"Workspace {workspace_id} deleted by {user.id}")
    return Response(status_code=204)


# ============================================================
# SHARING
# ============================================================

@router.post("/{workspace_id}/sharing", response_model=SharingOut)
async def enable_sharing(
    workspace_id: UUID,
    request: Request,
    data: SharingRequest = SharingRequest(),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Share the workspace by link, or change the mode of an existing share.

    The row is locked for the duration of the transaction and an existing
    token is kept, so repeated or concurrent calls hand out the same link.
    """
    workspace, _ = await require_workspace(
        db, user.id, str(workspace_id), Operation.READ, for_update=True,
    )
    if not can_manage_sharing(user.id, workspace):
        raise HTTPException(status_code=403, detail="Only the workspace owner can change sharing")

    if not workspace.share_token:
        workspace.share_token = str(uuid.uuid4())
    workspace.is_shared_publicly = True
    workspace.public_share_mode = data.share_mode.value
    await db.commit()

    sharing_logger.info(
        f"Workspace {workspace.id} shared ({data.share_mode.value}) "
        f"token={workspace.share_token[:8]}..."
    )
    return SharingOut(
        workspace_id=workspace.id,
        share_token=workspace.share_token,
        share_mode=workspace.public_share_mode,
        shareable_link=_shareable_link(request, workspace.share_token),
    )


@router.delete("/{workspace_id}/sharing", status_code=204)
async def disable_sharing(
    workspace_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Revoke the share link; the old token stops resolving immediately"""
    workspace, _ = await require_workspace(
        db, user.id, str(workspace_id), Operation.READ, for_update=True,
    )
    if not can_manage_sharing(user.id, workspace):
        raise HTTPException(status_code=403, detail="Only the workspace owner can change sharing")

    old_token = workspace.share_token or ""
    workspace.share_token = None
    workspace.is_shared_publicly = False
    workspace.public_share_mode = None
    await db.commit()

    sharing_logger.info(f"Workspace {workspace.id} unshared token={old_token[:8]}...")
    return Response(status_code=204)


# ============================================================
# TAGS IN WORKSPACE CONTEXT
# ============================================================

@router.get("/{workspace_id}/shared-tags", response_model=List[str])
async def list_shared_tag_ids(
    workspace_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Ids of the tags shared with this workspace"""
    workspace, _ = await require_workspace(db, user.id, str(workspace_id), Operation.READ)
    return sorted(await shared_tag_ids(db, workspace.id))


@router.get("/{workspace_id}/tags", response_model=List[TagOut])
async def list_workspace_tags(
    workspace_id: UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Tags the caller may see and assign inside this workspace"""
    pid = principal_id(user)
    workspace, _ = await require_workspace(db, pid, str(workspace_id), Operation.READ)
    return [tag_out(t) for t in await visible_tags(db, pid, workspace)]
