# routers/public.py — Read a shared workspace through its link token
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_optional_user, principal_id, CurrentUser
from database import get_db_session
from access import Operation, enforce, get_workspace_by_token
from policy import access_level
from schemas import BoardOut
from routers.workspaces import load_board

router = APIRouter(prefix="/api/v1/public", tags=["Public"])


@router.get("/workspaces/{share_token}", response_model=BoardOut)
async def get_shared_workspace(
    share_token: str = Path(..., min_length=1, max_length=128),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Board behind a share link. Signed-in holders of an editable link may write."""
    workspace = await get_workspace_by_token(db, share_token)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Shared workspace not found")

    pid = principal_id(user)
    level = access_level(pid, workspace)
    enforce(level, Operation.READ, "Shared workspace")
    return await load_board(db, workspace, level, pid)
