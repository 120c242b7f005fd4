# models.py — Database models for Boardshare
# - UUID string primary keys everywhere
# - Workspace -> Stage -> Task board graph with cascade deletes
# - Owner-only Projects / Versions
# - Tags with assignment and workspace-sharing junctions

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, Date, Boolean, Integer, Text,
    ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class ShareMode(str, PyEnum):
    READ_ONLY = "read-only"
    EDITABLE = "editable"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, index=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Everything a user owns goes with them
    workspaces = relationship("Workspace", back_populates="owner", cascade="all, delete")
    projects = relationship("Project", back_populates="owner", cascade="all, delete")
    versions = relationship("Version", back_populates="owner", cascade="all, delete")
    tags = relationship("Tag", back_populates="owner", cascade="all, delete")


# ============================================================
# BOARD GRAPH
# ============================================================

class Workspace(Base):
    """Tenant-owned board; root of the shareable resource graph"""
    __tablename__ = "workspaces"

    id = Column(String, primary_key=True, default=new_uuid)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    share_token = Column(String, unique=True, nullable=True)  # set iff is_shared_publicly
    is_shared_publicly = Column(Boolean, nullable=False, default=False)
    public_share_mode = Column(String, nullable=True)  # ShareMode value, only while shared
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    # Relationships
    owner = relationship("User", back_populates="workspaces")
    stages = relationship(
        "Stage", back_populates="workspace", order_by="Stage.order",
        cascade="all, delete",
    )
    tasks = relationship(
        "Task", back_populates="workspace",
        cascade="all, delete",
    )
    tag_shares = relationship(
        "TagShare", back_populates="workspace",
        cascade="all, delete",
    )


class Stage(Base):
    """Ordered column within a workspace"""
    __tablename__ = "stages"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    workspace = relationship("Workspace", back_populates="stages")
    tasks = relationship(
        "Task", back_populates="stage", order_by="Task.order",
        cascade="all, delete",
    )

    __table_args__ = (
        Index("idx_stage_workspace_order", "workspace_id", "order"),
    )


class Task(Base):
    """Card on a stage. workspace_id duplicates stage.workspace_id for access checks."""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    stage_id = Column(String, ForeignKey("stages.id", ondelete="CASCADE"), nullable=False, index=True)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    due_date = Column(Date, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)
    project_id = Column(String, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    version_id = Column(String, ForeignKey("versions.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    stage = relationship("Stage", back_populates="tasks")
    workspace = relationship("Workspace", back_populates="tasks")
    project = relationship("Project", back_populates="tasks")
    version = relationship("Version", back_populates="tasks")
    tag_assignments = relationship(
        "TagAssignment", back_populates="task",
        cascade="all, delete",
    )

    __table_args__ = (
        Index("idx_task_workspace_stage", "workspace_id", "stage_id"),
    )


# ============================================================
# PROJECTS & VERSIONS (owner-only)
# ============================================================

class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=new_uuid)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    finish_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    owner = relationship("User", back_populates="projects")
    # No delete cascade: removing a project nulls the references instead
    tasks = relationship("Task", back_populates="project")
    versions = relationship("Version", back_populates="project")


class Version(Base):
    __tablename__ = "versions"

    id = Column(String, primary_key=True, default=new_uuid)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    release_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    owner = relationship("User", back_populates="versions")
    project = relationship("Project", back_populates="versions")
    tasks = relationship("Task", back_populates="version")


# ============================================================
# TAGS
# ============================================================

class Tag(Base):
    """User-owned label; global tags are visible everywhere"""
    __tablename__ = "tags"

    id = Column(String, primary_key=True, default=new_uuid)
    owner_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    is_global = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    owner = relationship("User", back_populates="tags")
    assignments = relationship(
        "TagAssignment", back_populates="tag",
        cascade="all, delete",
    )
    shares = relationship(
        "TagShare", back_populates="tag",
        cascade="all, delete",
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "name", name="uq_tag_owner_name"),
    )


class TagAssignment(Base):
    """Task <-> Tag junction"""
    __tablename__ = "task_tags"

    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow)

    task = relationship("Task", back_populates="tag_assignments")
    tag = relationship("Tag", back_populates="assignments")


class TagShare(Base):
    """Tag <-> Workspace sharing junction"""
    __tablename__ = "tag_shares"

    tag_id = Column(String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), primary_key=True)
    shared_at = Column(DateTime(timezone=True), default=utcnow)
    shared_by_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    tag = relationship("Tag", back_populates="shares")
    workspace = relationship("Workspace", back_populates="tag_shares")
