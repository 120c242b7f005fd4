# routers/tasks.py — Tasks on a board and their tag assignments
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user, principal_id, CurrentUser
from database import get_db_session
from models import Stage, Task, Tag, TagAssignment
from policy import task_placement_valid
from access import (
    Operation, require_workspace, require_task, require_tag,
    require_project, require_version, filter_visible,
)
from schemas import TaskCreate, TaskUpdate, TaskOut, TagAssign, TagOut, task_out, tag_out, id_str

router = APIRouter(prefix="/api/v1", tags=["Tasks"])
logger = logging.getLogger("boardshare.tasks")


# ============================================================
# HELPERS
# ============================================================

async def _place(db: AsyncSession, task: Task, stage_id: str) -> Stage:
    """Put ``task`` on ``stage_id``, which must sit in the task's workspace."""
    stage = await db.get(Stage, stage_id)
    task.stage_id = stage_id
    if not task_placement_valid(task, stage):
        raise HTTPException(status_code=400, detail="Stage does not belong to this workspace")
    return stage


async def _next_order(db: AsyncSession, stage_id: str) -> int:
    stmt = select(func.max(Task.order)).where(Task.stage_id == stage_id)
    current = (await db.execute(stmt)).scalar()
    return 0 if current is None else current + 1


async def _check_links(db: AsyncSession, user_id: str, project_id: Optional[str], version_id: Optional[str]) -> None:
    """Linking a project or version requires owning it; clearing a link does not."""
    if project_id:
        await require_project(db, user_id, project_id)
    if version_id:
        await require_version(db, user_id, version_id)


# ============================================================
# TASK ENDPOINTS
# ============================================================

@router.get("/workspaces/{workspace_id}/tasks", response_model=List[TaskOut])
async def list_tasks(
    workspace_id: UUID,
    archived: bool = Query(False, description="List archived tasks instead of live ones"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    workspace, _ = await require_workspace(db, principal_id(user), str(workspace_id), Operation.READ)
    stmt = (
        select(Task)
        .join(Stage, Stage.id == Task.stage_id)
        .where(Task.workspace_id == workspace.id, Task.is_archived.is_(archived))
        .order_by(Stage.order.asc(), Task.order.asc(), Task.created_at.asc())
    )
    result = await db.execute(stmt)
    return [task_out(t) for t in result.scalars().all()]


@router.post("/workspaces/{workspace_id}/tasks", response_model=TaskOut, status_code=201)
async def create_task(
    workspace_id: UUID,
    data: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a task at the bottom of a stage"""
    workspace, _ = await require_workspace(db, user.id, str(workspace_id), Operation.WRITE)
    await _check_links(db, user.id, id_str(data.project_id), id_str(data.version_id))

    task = Task(
        workspace_id=workspace.id,
        title=data.title,
        description=data.description,
        due_date=data.due_date,
        project_id=id_str(data.project_id),
        version_id=id_str(data.version_id),
    )
    stage = await _place(db, task, str(data.stage_id))
    task.order = await _next_order(db, stage.id)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task_out(task)


@router.get("/tasks/{task_id}", response_model=TaskOut)
async def get_task(
    task_id: UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    task, _, _ = await require_task(db, principal_id(user), str(task_id), Operation.READ)
    return task_out(task)


@router.patch("/tasks/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Edit, move, archive or relink a task"""
    task, _, _ = await require_task(db, user.id, str(task_id), Operation.WRITE)
    fields = data.model_fields_set

    if "project_id" in fields or "version_id" in fields:
        await _check_links(
            db, user.id,
            id_str(data.project_id) if "project_id" in fields else None,
            id_str(data.version_id) if "version_id" in fields else None,
        )

    if data.stage_id is not None and str(data.stage_id) != task.stage_id:
        stage = await _place(db, task, str(data.stage_id))
        if data.order is None:
            task.order = await _next_order(db, stage.id)

    if data.title is not None:
        task.title = data.title
    if data.order is not None:
        task.order = data.order
    if data.is_archived is not None:
        task.is_archived = data.is_archived
    if "description" in fields:
        task.description = data.description
    if "due_date" in fields:
        task.due_date = data.due_date
    if "project_id" in fields:
        task.project_id = id_str(data.project_id)
    if "version_id" in fields:
        task.version_id = id_str(data.version_id)

    await db.commit()
    await db.refresh(task)
    return task_out(task)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task, _, _ = await require_task(db, user.id, str(task_id), Operation.DELETE)
    await db.delete(task)
    await db.commit()
    logger.info(f"Task {task_id} deleted by {user.id}")
    return Response(status_code=204)


# ============================================================
# TAG ASSIGNMENTS
# ============================================================

@router.get("/tasks/{task_id}/tags", response_model=List[TagOut])
async def list_task_tags(
    task_id: UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Tags on the task that the caller may see in its workspace"""
    pid = principal_id(user)
    task, workspace, _ = await require_task(db, pid, str(task_id), Operation.READ)
    stmt = (
        select(Tag)
        .join(TagAssignment, TagAssignment.tag_id == Tag.id)
        .where(TagAssignment.task_id == task.id)
        .order_by(Tag.name.asc())
    )
    tags = (await db.execute(stmt)).scalars().all()
    return [tag_out(t) for t in await filter_visible(db, pid, tags, workspace)]


@router.post("/tasks/{task_id}/tags", response_model=TagOut, status_code=201)
async def assign_tag(
    task_id: UUID,
    data: TagAssign,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Attach a tag that is visible in the task's workspace"""
    task, workspace, _ = await require_task(db, user.id, str(task_id), Operation.WRITE)
    tag, _ = await require_tag(db, user.id, str(data.tag_id), Operation.READ, workspace)

    existing = await db.get(TagAssignment, (task.id, tag.id))
    if existing is not None:
        raise HTTPException(status_code=409, detail="Tag already assigned to this task")

    db.add(TagAssignment(task_id=task.id, tag_id=tag.id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail="Tag already assigned to this task")
    return tag_out(tag)


@router.delete("/tasks/{task_id}/tags/{tag_id}", status_code=204)
async def unassign_tag(
    task_id: UUID,
    tag_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task, _, _ = await require_task(db, user.id, str(task_id), Operation.WRITE)
    assignment = await db.get(TagAssignment, (task.id, str(tag_id)))
    if assignment is None:
        raise HTTPException(status_code=404, detail="Tag is not assigned to this task")

    await db.delete(assignment)
    await db.commit()
    return Response(status_code=204)
