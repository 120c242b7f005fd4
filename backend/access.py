# access.py — Loads resources and turns policy decisions into HTTP responses
"""
Boundary between the pure rules in policy.py and the routers.

Mapping:
    DENIED (any operation)          -> 404, existence is never confirmed
    READ_ONLY on write or delete    -> 403
    no principal where one is needed -> 401 (raised by auth dependencies)
"""

import logging
from enum import Enum
from typing import Iterable, Optional, Tuple, List, Set

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from models import Workspace, Stage, Task, Project, Version, Tag, TagShare
from policy import AccessLevel, access_level, tag_visible

logger = logging.getLogger("boardshare.access")


class Operation(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


def enforce(level: AccessLevel, operation: Operation, what: str = "Resource") -> None:
    """Raise the boundary response for a decision, or return if permitted."""
    if level is AccessLevel.DENIED:
        logger.debug(f"{operation.value} on {what} denied")
        raise HTTPException(status_code=404, detail=f"{what} not found")
    if operation is not Operation.READ and not level.can_write:
        logger.debug(f"{operation.value} on {what} refused for {level.value} access")
        raise HTTPException(status_code=403, detail=f"{what} is read-only for you")


# ============================================================
# LOADERS
# ============================================================

async def get_workspace(db: AsyncSession, workspace_id: str, for_update: bool = False) -> Optional[Workspace]:
    stmt = select(Workspace).where(Workspace.id == workspace_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_workspace_by_token(db: AsyncSession, share_token: str) -> Optional[Workspace]:
    stmt = select(Workspace).where(
        Workspace.share_token == share_token,
        Workspace.is_shared_publicly.is_(True),
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_stage_with_workspace(db: AsyncSession, stage_id: str) -> Tuple[Optional[Stage], Optional[Workspace]]:
    stmt = (
        select(Stage, Workspace)
        .join(Workspace, Workspace.id == Stage.workspace_id)
        .where(Stage.id == stage_id)
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        return None, None
    return row[0], row[1]


async def get_task_with_workspace(db: AsyncSession, task_id: str) -> Tuple[Optional[Task], Optional[Workspace]]:
    stmt = (
        select(Task, Workspace)
        .join(Workspace, Workspace.id == Task.workspace_id)
        .where(Task.id == task_id)
    )
    row = (await db.execute(stmt)).first()
    if row is None:
        return None, None
    return row[0], row[1]


async def is_tag_shared_with(db: AsyncSession, tag_id: str, workspace_id: Optional[str]) -> bool:
    if not workspace_id:
        return False
    stmt = select(TagShare.tag_id).where(
        TagShare.tag_id == tag_id,
        TagShare.workspace_id == workspace_id,
    )
    return (await db.execute(stmt)).first() is not None


# ============================================================
# CHECKED LOADERS (load + decide + enforce)
# ============================================================

async def require_workspace(
    db: AsyncSession,
    principal_id: Optional[str],
    workspace_id: str,
    operation: Operation,
    for_update: bool = False,
) -> Tuple[Workspace, AccessLevel]:
    workspace = await get_workspace(db, workspace_id, for_update=for_update)
    level = access_level(principal_id, workspace)
    enforce(level, operation, "Workspace")
    return workspace, level


async def require_stage(
    db: AsyncSession, principal_id: Optional[str], stage_id: str, operation: Operation,
) -> Tuple[Stage, Workspace, AccessLevel]:
    stage, workspace = await get_stage_with_workspace(db, stage_id)
    level = access_level(principal_id, stage, workspace)
    enforce(level, operation, "Stage")
    return stage, workspace, level


async def require_task(
    db: AsyncSession, principal_id: Optional[str], task_id: str, operation: Operation,
) -> Tuple[Task, Workspace, AccessLevel]:
    task, workspace = await get_task_with_workspace(db, task_id)
    level = access_level(principal_id, task, workspace)
    enforce(level, operation, "Task")
    return task, workspace, level


async def require_owned(db: AsyncSession, principal_id: Optional[str], model, resource_id: str, what: str):
    """Load a Project or Version and require the caller to own it."""
    resource = await db.get(model, resource_id)
    enforce(access_level(principal_id, resource), Operation.WRITE, what)
    return resource


async def require_project(db: AsyncSession, principal_id: Optional[str], project_id: str) -> Project:
    return await require_owned(db, principal_id, Project, project_id, "Project")


async def require_version(db: AsyncSession, principal_id: Optional[str], version_id: str) -> Version:
    return await require_owned(db, principal_id, Version, version_id, "Version")


async def require_tag(
    db: AsyncSession,
    principal_id: Optional[str],
    tag_id: str,
    operation: Operation,
    workspace: Optional[Workspace] = None,
) -> Tuple[Tag, AccessLevel]:
    tag = await db.get(Tag, tag_id)
    shared = tag is not None and await is_tag_shared_with(db, tag.id, workspace.id if workspace else None)
    level = access_level(principal_id, tag, workspace, tag_shared=shared)
    enforce(level, operation, "Tag")
    return tag, level


# ============================================================
# TAG VISIBILITY QUERIES
# ============================================================

async def shared_tag_ids(db: AsyncSession, workspace_id: str) -> Set[str]:
    result = await db.execute(
        select(TagShare.tag_id).where(TagShare.workspace_id == workspace_id)
    )
    return {r[0] for r in result}


async def filter_visible(
    db: AsyncSession,
    principal_id: Optional[str],
    tags: Iterable[Tag],
    workspace: Workspace,
) -> List[Tag]:
    """Keep the tags ``principal_id`` may see inside ``workspace``."""
    shared_ids = await shared_tag_ids(db, workspace.id)
    return [t for t in tags if tag_visible(principal_id, t, workspace, t.id in shared_ids)]


async def visible_tags(
    db: AsyncSession,
    principal_id: Optional[str],
    workspace: Optional[Workspace] = None,
) -> List[Tag]:
    """Tags visible to the principal, optionally in a workspace context.

    The SQL narrows candidates (own, global, shared with this workspace);
    tag_visible() makes the final call for each row.
    """
    conditions = [Tag.is_global.is_(True)]
    if principal_id:
        conditions.append(Tag.owner_id == principal_id)
    shared_ids = set()
    if workspace is not None:
        shared_ids = await shared_tag_ids(db, workspace.id)
        if shared_ids:
            conditions.append(Tag.id.in_(shared_ids))

    stmt = select(Tag).where(or_(*conditions)).order_by(Tag.name.asc())
    tags = (await db.execute(stmt)).scalars().all()
    return [
        t for t in tags
        if tag_visible(principal_id, t, workspace, t.id in shared_ids)
    ]
