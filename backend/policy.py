# policy.py — Authorization rules for workspaces, stages, tasks and tags
"""
Pure access predicates over the resource graph.

Nothing in this module touches the database or raises for "no access":
callers load the rows, ask for a decision and map it to a response
(see access.py). Every decision is computed from the state passed in,
so revoking a share takes effect on the very next request.

Graph::

    Workspace -> Stage -> Task -> {Project, Version, Tag}
    Tag <-> Workspace (TagShare)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from models import ShareMode, Workspace, Stage, Task, Project, Version, Tag


class AccessLevel(str, Enum):
    DENIED = "denied"
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"

    @property
    def can_read(self) -> bool:
        return self is not AccessLevel.DENIED

    @property
    def can_write(self) -> bool:
        return self is AccessLevel.READ_WRITE


@dataclass(frozen=True)
class SharingState:
    """Private when mode is None, otherwise Shared(mode)"""
    mode: Optional[ShareMode] = None

    @property
    def is_shared(self) -> bool:
        return self.mode is not None


PRIVATE = SharingState()

OwnedResource = Union[Workspace, Project, Version, Tag]
BoardResource = Union[Workspace, Stage, Task]


# ============================================================
# PREDICATES
# ============================================================

def is_owner(principal_id: Optional[str], resource: Optional[OwnedResource]) -> bool:
    if not principal_id or resource is None:
        return False
    return resource.owner_id == principal_id


def sharing_state(workspace: Workspace) -> SharingState:
    """Derive the sharing state from the stored flags alone."""
    if not workspace.is_shared_publicly or not workspace.public_share_mode:
        return PRIVATE
    try:
        return SharingState(ShareMode(workspace.public_share_mode))
    except ValueError:
        # Unknown mode strings never grant anything
        return PRIVATE


def can_collaborate(principal_id: Optional[str], workspace: Optional[Workspace]) -> bool:
    """Owner, or any signed-in user while the workspace is shared as editable."""
    if workspace is None:
        return False
    if is_owner(principal_id, workspace):
        return True
    return bool(principal_id) and sharing_state(workspace).mode is ShareMode.EDITABLE


def tag_visible(
    principal_id: Optional[str],
    tag: Optional[Tag],
    workspace: Optional[Workspace] = None,
    shared_with_workspace: bool = False,
) -> bool:
    """Whether ``tag`` may be seen (and assigned) in the context of ``workspace``.

    ``shared_with_workspace`` says whether a TagShare row exists for
    (tag, workspace). The answer is per workspace: a tag shared with A is
    not visible from B.
    """
    if tag is None:
        return False
    if tag.is_global:
        return True
    if is_owner(principal_id, tag):
        return True
    if workspace is None or not shared_with_workspace:
        return False
    return can_collaborate(principal_id, workspace)


# ============================================================
# DECISION FUNCTION
# ============================================================

def _board_access(principal_id: Optional[str], workspace: Workspace) -> AccessLevel:
    if is_owner(principal_id, workspace):
        return AccessLevel.READ_WRITE
    state = sharing_state(workspace)
    if not state.is_shared:
        return AccessLevel.DENIED
    if state.mode is ShareMode.READ_ONLY:
        return AccessLevel.READ_ONLY
    # Editable: any authenticated holder may write, anonymous only reads
    return AccessLevel.READ_WRITE if principal_id else AccessLevel.READ_ONLY


def access_level(
    principal_id: Optional[str],
    resource,
    workspace: Optional[Workspace] = None,
    *,
    tag_shared: bool = False,
) -> AccessLevel:
    """Resolve Denied / ReadOnly / ReadWrite for a principal on a resource.

    Stages and tasks are judged by their owning workspace, which must be
    passed in and must match the resource's ``workspace_id``. A missing
    resource or workspace is always DENIED.
    """
    if resource is None:
        return AccessLevel.DENIED

    if isinstance(resource, (Project, Version)):
        return AccessLevel.READ_WRITE if is_owner(principal_id, resource) else AccessLevel.DENIED

    if isinstance(resource, Tag):
        if is_owner(principal_id, resource):
            return AccessLevel.READ_WRITE
        if tag_visible(principal_id, resource, workspace, tag_shared):
            return AccessLevel.READ_ONLY
        return AccessLevel.DENIED

    if isinstance(resource, Workspace):
        return _board_access(principal_id, resource)

    if isinstance(resource, (Stage, Task)):
        if workspace is None or workspace.id != resource.workspace_id:
            return AccessLevel.DENIED
        return _board_access(principal_id, workspace)

    return AccessLevel.DENIED


# ============================================================
# LIFECYCLE RULES
# ============================================================

def can_delete_workspace(principal_id: Optional[str], workspace: Optional[Workspace]) -> bool:
    """Deleting a workspace is owner-only whatever the sharing mode."""
    return is_owner(principal_id, workspace)


def can_manage_sharing(principal_id: Optional[str], workspace: Optional[Workspace]) -> bool:
    return is_owner(principal_id, workspace)


def can_share_tag(principal_id: Optional[str], tag: Optional[Tag]) -> bool:
    """Only the tag's owner may share or unshare it, never the workspace owner."""
    return is_owner(principal_id, tag)


def task_placement_valid(task: Task, stage: Optional[Stage]) -> bool:
    """task.workspace_id must equal the workspace of the stage it sits on."""
    return stage is not None and task.stage_id == stage.id and task.workspace_id == stage.workspace_id
