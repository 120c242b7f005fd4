# tests/test_projects.py — Owner-only projects and versions
import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, create_workspace, create_task


@pytest.mark.asyncio
class TestProjects:
    async def test_crud(self, client: AsyncClient, owner_user):
        headers = get_auth_headers(owner_user)
        res = await client.post(
            "/api/v1/projects",
            json={"name": "Apollo", "description": "Moonshot", "color": "#112233"},
            headers=headers,
        )
        assert res.status_code == 201
        project = res.json()

        listed = (await client.get("/api/v1/projects", headers=headers)).json()
        assert [p["id"] for p in listed] == [project["id"]]

        res = await client.patch(f"/api/v1/projects/{project['id']}", json={"description": None}, headers=headers)
        assert res.status_code == 200
        assert res.json()["description"] is None
        assert res.json()["name"] == "Apollo"

        assert (await client.delete(f"/api/v1/projects/{project['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"/api/v1/projects/{project['id']}", headers=headers)).status_code == 404

    async def test_description_limit(self, client: AsyncClient, owner_user):
        res = await client.post(
            "/api/v1/projects", json={"name": "Long", "description": "x" * 1001},
            headers=get_auth_headers(owner_user),
        )
        assert res.status_code == 400

    async def test_invisible_to_others(self, client: AsyncClient, owner_user, other_user):
        project = (await client.post(
            "/api/v1/projects", json={"name": "Private"}, headers=get_auth_headers(owner_user),
        )).json()
        headers = get_auth_headers(other_user)
        assert (await client.get(f"/api/v1/projects/{project['id']}", headers=headers)).status_code == 404
        assert (await client.patch(f"/api/v1/projects/{project['id']}", json={"name": "x"}, headers=headers)).status_code == 404
        assert (await client.delete(f"/api/v1/projects/{project['id']}", headers=headers)).status_code == 404
        assert (await client.get("/api/v1/projects", headers=headers)).json() == []

    async def test_delete_unlinks_tasks_and_versions(self, client: AsyncClient, owner_user):
        headers = get_auth_headers(owner_user)
        project = (await client.post("/api/v1/projects", json={"name": "Gone"}, headers=headers)).json()
        version = (await client.post(
            "/api/v1/versions", json={"name": "1.0", "project_id": project["id"]}, headers=headers,
        )).json()
        ws = await create_workspace(client, owner_user)
        task = await create_task(client, owner_user, ws["id"])
        await client.patch(f"/api/v1/tasks/{task['id']}", json={"project_id": project["id"]}, headers=headers)

        assert (await client.delete(f"/api/v1/projects/{project['id']}", headers=headers)).status_code == 204

        task_after = (await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)).json()
        version_after = (await client.get(f"/api/v1/versions/{version['id']}", headers=headers)).json()
        assert task_after["project_id"] is None
        assert version_after["project_id"] is None


@pytest.mark.asyncio
class TestVersions:
    async def test_crud(self, client: AsyncClient, owner_user):
        headers = get_auth_headers(owner_user)
        res = await client.post(
            "/api/v1/versions", json={"name": "2.0", "status": "planned"}, headers=headers,
        )
        assert res.status_code == 201
        version = res.json()
        assert version["status"] == "planned"

        res = await client.patch(f"/api/v1/versions/{version['id']}", json={"status": "released"}, headers=headers)
        assert res.json()["status"] == "released"

        assert (await client.delete(f"/api/v1/versions/{version['id']}", headers=headers)).status_code == 204
        assert (await client.get("/api/v1/versions", headers=headers)).json() == []

    async def test_cannot_attach_to_foreign_project(self, client: AsyncClient, owner_user, other_user):
        project = (await client.post(
            "/api/v1/projects", json={"name": "Owner's"}, headers=get_auth_headers(owner_user),
        )).json()
        res = await client.post(
            "/api/v1/versions", json={"name": "Hijack", "project_id": project["id"]},
            headers=get_auth_headers(other_user),
        )
        assert res.status_code == 404

    async def test_status_limit(self, client: AsyncClient, owner_user):
        res = await client.post(
            "/api/v1/versions", json={"name": "v", "status": "s" * 51},
            headers=get_auth_headers(owner_user),
        )
        assert res.status_code == 400

    async def test_delete_unlinks_tasks(self, client: AsyncClient, owner_user):
        headers = get_auth_headers(owner_user)
        version = (await client.post("/api/v1/versions", json={"name": "0.1"}, headers=headers)).json()
        ws = await create_workspace(client, owner_user)
        task = await create_task(client, owner_user, ws["id"])
        await client.patch(f"/api/v1/tasks/{task['id']}", json={"version_id": version["id"]}, headers=headers)

        await client.delete(f"/api/v1/versions/{version['id']}", headers=headers)
        task_after = (await client.get(f"/api/v1/tasks/{task['id']}", headers=headers)).json()
        assert task_after["version_id"] is None
