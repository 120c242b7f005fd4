# routers/projects.py — Projects and versions (private to their owner)
import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from database import get_db_session
from models import Project, Version
from access import require_project, require_version
from schemas import (
    ProjectCreate, ProjectUpdate, ProjectOut,
    VersionCreate, VersionUpdate, VersionOut,
    project_out, version_out, id_str,
)

router = APIRouter(prefix="/api/v1", tags=["Projects"])
logger = logging.getLogger("boardshare.projects")


def _apply(obj, data, fields) -> None:
    for name in fields:
        setattr(obj, name, getattr(data, name))


# ============================================================
# PROJECTS
# ============================================================

@router.get("/projects", response_model=List[ProjectOut])
async def list_projects(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(Project).where(Project.owner_id == user.id).order_by(Project.created_at.desc())
    result = await db.execute(stmt)
    return [project_out(p) for p in result.scalars().all()]


@router.post("/projects", response_model=ProjectOut, status_code=201)
async def create_project(
    data: ProjectCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    project = Project(owner_id=user.id, **data.model_dump())
    db.add(project)
    await db.commit()
    await db.refresh(project)
    return project_out(project)


@router.get("/projects/{project_id}", response_model=ProjectOut)
async def get_project(
    project_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return project_out(await require_project(db, user.id, str(project_id)))


@router.patch("/projects/{project_id}", response_model=ProjectOut)
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    project = await require_project(db, user.id, str(project_id))
    fields = set(data.model_fields_set)
    # A project always keeps a name
    if data.name is None:
        fields.discard("name")
    _apply(project, data, fields)
    await db.commit()
    await db.refresh(project)
    return project_out(project)


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a project; tasks and versions pointing at it are unlinked"""
    project = await require_project(db, user.id, str(project_id))
    await db.delete(project)
    await db.commit()
    logger.info(f"Project {project_id} deleted by {user.id}")
    return Response(status_code=204)


# ============================================================
# VERSIONS
# ============================================================

@router.get("/versions", response_model=List[VersionOut])
async def list_versions(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = select(Version).where(Version.owner_id == user.id).order_by(Version.created_at.desc())
    result = await db.execute(stmt)
    return [version_out(v) for v in result.scalars().all()]


@router.post("/versions", response_model=VersionOut, status_code=201)
async def create_version(
    data: VersionCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    if data.project_id is not None:
        await require_project(db, user.id, str(data.project_id))

    values = data.model_dump()
    values["project_id"] = id_str(data.project_id)
    version = Version(owner_id=user.id, **values)
    db.add(version)
    await db.commit()
    await db.refresh(version)
    return version_out(version)


@router.get("/versions/{version_id}", response_model=VersionOut)
async def get_version(
    version_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    return version_out(await require_version(db, user.id, str(version_id)))


@router.patch("/versions/{version_id}", response_model=VersionOut)
async def update_version(
    version_id: UUID,
    data: VersionUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    version = await require_version(db, user.id, str(version_id))
    fields = set(data.model_fields_set)
    if data.name is None:
        fields.discard("name")

    if "project_id" in fields:
        if data.project_id is not None:
            await require_project(db, user.id, str(data.project_id))
        version.project_id = id_str(data.project_id)
        fields.discard("project_id")

    _apply(version, data, fields)
    await db.commit()
    await db.refresh(version)
    return version_out(version)


@router.delete("/versions/{version_id}", status_code=204)
async def delete_version(
    version_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a version; tasks pointing at it are unlinked"""
    version = await require_version(db, user.id, str(version_id))
    await db.delete(version)
    await db.commit()
    logger.info(f"Version {version_id} deleted by {user.id}")
    return Response(status_code=204)
