# routers/stages.py — Stages (board columns) inside a workspace
import logging
from typing import Optional, List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user, principal_id, CurrentUser
from database import get_db_session
from models import Stage
from access import Operation, require_workspace, require_stage
from schemas import StageCreate, StageUpdate, StageOut, stage_out

router = APIRouter(prefix="/api/v1", tags=["Stages"])
logger = logging.getLogger("boardshare.stages")


@router.get("/workspaces/{workspace_id}/stages", response_model=List[StageOut])
async def list_stages(
    workspace_id: UUID,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    workspace, _ = await require_workspace(db, principal_id(user), str(workspace_id), Operation.READ)
    result = await db.execute(
        select(Stage).where(Stage.workspace_id == workspace.id).order_by(Stage.order.asc())
    )
    return [stage_out(s) for s in result.scalars().all()]


@router.post("/workspaces/{workspace_id}/stages", response_model=StageOut, status_code=201)
async def create_stage(
    workspace_id: UUID,
    data: StageCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Add a stage at the front of the board, pushing the others right"""
    workspace, _ = await require_workspace(db, user.id, str(workspace_id), Operation.WRITE)

    await db.execute(
        update(Stage)
        .where(Stage.workspace_id == workspace.id)
        .values(order=Stage.order + 1)
    )
    stage = Stage(workspace_id=workspace.id, title=data.title, order=0)
    db.add(stage)
    await db.commit()
    await db.refresh(stage)
    return stage_out(stage)


@router.patch("/stages/{stage_id}", response_model=StageOut)
async def update_stage(
    stage_id: UUID,
    data: StageUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    stage, _, _ = await require_stage(db, user.id, str(stage_id), Operation.WRITE)

    if data.title is not None:
        stage.title = data.title
    if data.order is not None:
        stage.order = data.order

    await db.commit()
    await db.refresh(stage)
    return stage_out(stage)


@router.delete("/stages/{stage_id}", status_code=204)
async def delete_stage(
    stage_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a stage and every task on it"""
    stage, workspace, _ = await require_stage(db, user.id, str(stage_id), Operation.DELETE)
    await db.delete(stage)
    await db.commit()
    logger.info(f"Stage {stage_id} removed from workspace {workspace.id} by {user.id}")
    return Response(status_code=204)
