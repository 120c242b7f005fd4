# tests/test_workspaces.py — Workspace lifecycle and board view
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from models import Stage, Task, TagShare, TagAssignment
from tests.conftest import get_auth_headers, create_workspace, create_task, create_tag


@pytest.mark.asyncio
class TestCreateWorkspace:
    async def test_seeds_default_stages(self, client: AsyncClient, owner_user):
        ws = await create_workspace(client, owner_user, "  Sprint 1  ")
        assert ws["name"] == "Sprint 1"
        assert ws["owner_id"] == owner_user.id
        assert ws["is_shared_publicly"] is False

        res = await client.get(
            f"/api/v1/workspaces/{ws['id']}/stages", headers=get_auth_headers(owner_user),
        )
        stages = res.json()
        assert [(s["title"], s["order"]) for s in stages] == [
            ("To Do", 0), ("In Progress", 1), ("Done", 2),
        ]

    async def test_blank_name_rejected(self, client: AsyncClient, owner_user):
        res = await client.post(
            "/api/v1/workspaces", json={"name": "   "}, headers=get_auth_headers(owner_user),
        )
        assert res.status_code == 400

    async def test_name_too_long(self, client: AsyncClient, owner_user):
        res = await client.post(
            "/api/v1/workspaces", json={"name": "x" * 101}, headers=get_auth_headers(owner_user),
        )
        assert res.status_code == 400

    async def test_list_only_own(self, client: AsyncClient, owner_user, other_user):
        await create_workspace(client, owner_user, "Mine")
        await create_workspace(client, other_user, "Theirs")
        res = await client.get("/api/v1/workspaces", headers=get_auth_headers(owner_user))
        assert res.status_code == 200
        assert [w["name"] for w in res.json()] == ["Mine"]


@pytest.mark.asyncio
class TestBoardView:
    async def test_owner_sees_board(self, client: AsyncClient, owner_user):
        ws = await create_workspace(client, owner_user)
        task = await create_task(client, owner_user, ws["id"], "Write docs")

        res = await client.get(f"/api/v1/workspaces/{ws['id']}", headers=get_auth_headers(owner_user))
        assert res.status_code == 200
        board = res.json()
        assert board["access"] == "read_write"
        assert len(board["stages"]) == 3
        assert [t["id"] for t in board["tasks"]] == [task["id"]]

    async def test_archived_tasks_hidden(self, client: AsyncClient, owner_user):
        ws = await create_workspace(client, owner_user)
        task = await create_task(client, owner_user, ws["id"])
        await client.patch(
            f"/api/v1/tasks/{task['id']}", json={"is_archived": True},
            headers=get_auth_headers(owner_user),
        )
        res = await client.get(f"/api/v1/workspaces/{ws['id']}", headers=get_auth_headers(owner_user))
        assert res.json()["tasks"] == []

    async def test_private_workspace_is_not_found_for_others(self, client: AsyncClient, owner_user, other_user):
        ws = await create_workspace(client, owner_user)
        res = await client.get(f"/api/v1/workspaces/{ws['id']}", headers=get_auth_headers(other_user))
        assert res.status_code == 404
        anon = await client.get(f"/api/v1/workspaces/{ws['id']}")
        assert anon.status_code == 404

    async def test_unknown_workspace(self, client: AsyncClient, owner_user):
        res = await client.get(f"/api/v1/workspaces/{uuid.uuid4()}", headers=get_auth_headers(owner_user))
        assert res.status_code == 404

    async def test_malformed_id_is_bad_request(self, client: AsyncClient, owner_user):
        res = await client.get("/api/v1/workspaces/not-a-uuid", headers=get_auth_headers(owner_user))
        assert res.status_code == 400

    async def test_request_id_header(self, client: AsyncClient):
        res = await client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert res.headers["X-Request-ID"] == "abc-123"


@pytest.mark.asyncio
class TestRenameAndDelete:
    async def test_owner_renames(self, client: AsyncClient, owner_user):
        ws = await create_workspace(client, owner_user)
        res = await client.patch(
            f"/api/v1/workspaces/{ws['id']}", json={"name": "Renamed"},
            headers=get_auth_headers(owner_user),
        )
        assert res.status_code == 200
        assert res.json()["name"] == "Renamed"

    async def test_stranger_cannot_rename(self, client: AsyncClient, owner_user, other_user):
        ws = await create_workspace(client, owner_user)
        res = await client.patch(
            f"/api/v1/workspaces/{ws['id']}", json={"name": "Mine now"},
            headers=get_auth_headers(other_user),
        )
        assert res.status_code == 404

    async def test_stranger_cannot_delete(self, client: AsyncClient, owner_user, other_user):
        ws = await create_workspace(client, owner_user)
        res = await client.delete(f"/api/v1/workspaces/{ws['id']}", headers=get_auth_headers(other_user))
        assert res.status_code == 404

    async def test_delete_cascades(self, client: AsyncClient, db_session, owner_user):
        headers = get_auth_headers(owner_user)
        ws = await create_workspace(client, owner_user)
        task = await create_task(client, owner_user, ws["id"])
        tag = await create_tag(client, owner_user, "Bug")
        await client.post(f"/api/v1/tasks/{task['id']}/tags", json={"tag_id": tag["id"]}, headers=headers)
        await client.post(f"/api/v1/tags/{tag['id']}/shares", json={"workspace_id": ws["id"]}, headers=headers)

        res = await client.delete(f"/api/v1/workspaces/{ws['id']}", headers=headers)
        assert res.status_code == 204

        for model in (Stage, Task, TagShare):
            count = (await db_session.execute(
                select(func.count()).select_from(model).where(model.workspace_id == ws["id"])
            )).scalar()
            assert count == 0
        assignments = (await db_session.execute(
            select(func.count()).select_from(TagAssignment).where(TagAssignment.task_id == task["id"])
        )).scalar()
        assert assignments == 0

        # The tag itself belongs to the user, not the workspace
        tags = await client.get("/api/v1/tags", headers=headers)
        assert [t["name"] for t in tags.json()] == ["Bug"]

        gone = await client.get(f"/api/v1/workspaces/{ws['id']}", headers=headers)
        assert gone.status_code == 404
