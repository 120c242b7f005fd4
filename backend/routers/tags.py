# routers/tags.py — Tags and sharing tags with workspaces
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user, principal_id, CurrentUser
from database import get_db_session
from models import Tag, TagShare
from policy import access_level, can_share_tag
from access import Operation, get_workspace, require_workspace, require_tag, visible_tags
from schemas import (
    TagCreate, TagUpdate, TagOut, TagShareCreate, TagShareOut,
    tag_out, tag_share_out,
)

router = APIRouter(prefix="/api/v1/tags", tags=["Tags"])
logger = logging.getLogger("boardshare.tags")

DUPLICATE_NAME = "You already have a tag with this name"


async def _name_taken(db: AsyncSession, owner_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
    stmt = select(Tag.id).where(Tag.owner_id == owner_id, Tag.name == name)
    if exclude_id:
        stmt = stmt.where(Tag.id != exclude_id)
    return (await db.execute(stmt)).first() is not None


async def _commit_or_conflict(db: AsyncSession, detail: str) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=detail)


def _require_tag_owner(user_id: str, tag: Tag) -> None:
    if not can_share_tag(user_id, tag):
        raise HTTPException(status_code=403, detail="Only the tag owner can manage its shares")


# ============================================================
# TAG CRUD
# ============================================================

@router.get("", response_model=List[TagOut])
async def list_tags(
    workspace_id: Optional[UUID] = Query(None, description="List the tags visible inside this workspace"),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Own and global tags, plus shared ones when a workspace is given.

    Without a workspace the caller must be signed in.
    """
    pid = principal_id(user)
    workspace = None
    if workspace_id is not None:
        workspace, _ = await require_workspace(db, pid, str(workspace_id), Operation.READ)
    elif pid is None:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    return [tag_out(t) for t in await visible_tags(db, pid, workspace)]


@router.post("", response_model=TagOut, status_code=201)
async def create_tag(
    data: TagCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    if await _name_taken(db, user.id, data.name):
        raise HTTPException(status_code=409, detail=DUPLICATE_NAME)

    tag = Tag(owner_id=user.id, name=data.name, color=data.color, is_global=False)
    db.add(tag)
    await _commit_or_conflict(db, DUPLICATE_NAME)
    await db.refresh(tag)
    return tag_out(tag)


@router.patch("/{tag_id}", response_model=TagOut)
async def update_tag(
    tag_id: UUID,
    data: TagUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    tag, _ = await require_tag(db, user.id, str(tag_id), Operation.WRITE)

    if data.name is not None and data.name != tag.name:
        if await _name_taken(db, user.id, data.name, exclude_id=tag.id):
            raise HTTPException(status_code=409, detail=DUPLICATE_NAME)
        tag.name = data.name
    if data.color is not None:
        tag.color = data.color

    await _commit_or_conflict(db, DUPLICATE_NAME)
    await db.refresh(tag)
    return tag_out(tag)


@router.delete("/{tag_id}", status_code=204)
async def delete_tag(
    tag_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a tag along with its assignments and shares"""
    tag, _ = await require_tag(db, user.id, str(tag_id), Operation.DELETE)
    await db.delete(tag)
    await db.commit()
    logger.info(f"Tag {tag_id} deleted by {user.id}")
    return Response(status_code=204)


# ============================================================
# TAG SHARES
# ============================================================

@router.get("/{tag_id}/shares", response_model=List[TagShareOut])
async def list_tag_shares(
    tag_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    tag, _ = await require_tag(db, user.id, str(tag_id), Operation.READ)
    _require_tag_owner(user.id, tag)
    result = await db.execute(
        select(TagShare).where(TagShare.tag_id == tag.id).order_by(TagShare.shared_at.asc())
    )
    return [tag_share_out(s) for s in result.scalars().all()]


@router.post("/{tag_id}/shares", response_model=TagShareOut, status_code=201)
async def share_tag(
    tag_id: UUID,
    data: TagShareCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Make one of your tags usable by collaborators of a workspace"""
    tag, _ = await require_tag(db, user.id, str(tag_id), Operation.READ)
    _require_tag_owner(user.id, tag)
    workspace, _ = await require_workspace(db, user.id, str(data.workspace_id), Operation.READ)

    existing = await db.get(TagShare, (tag.id, workspace.id))
    if existing is not None:
        raise HTTPException(status_code=409, detail="Tag is already shared with this workspace")

    share = TagShare(tag_id=tag.id, workspace_id=workspace.id, shared_by_id=user.id)
    db.add(share)
    await _commit_or_conflict(db, "Tag is already shared with this workspace")
    await db.refresh(share)
    logger.info(f"Tag {tag.id} shared with workspace {workspace.id} by {user.id}")
    return tag_share_out(share)


@router.delete("/{tag_id}/shares/{workspace_id}", status_code=204)
async def unshare_tag(
    tag_id: UUID,
    workspace_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    # Tag is judged in the workspace context when the caller can see the workspace
    workspace = await get_workspace(db, str(workspace_id))
    context = workspace if access_level(user.id, workspace).can_read else None
    tag, _ = await require_tag(db, user.id, str(tag_id), Operation.READ, context)
    _require_tag_owner(user.id, tag)

    share = await db.get(TagShare, (tag.id, str(workspace_id)))
    if share is None:
        raise HTTPException(status_code=404, detail="Tag is not shared with this workspace")

    await db.delete(share)
    await db.commit()
    logger.info(f"Tag {tag.id} unshared from workspace {workspace_id} by {user.id}")
    return Response(status_code=204)
