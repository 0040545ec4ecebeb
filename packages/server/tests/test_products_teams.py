"""
Tests for the project product catalogue and agency teams.
"""

from __future__ import annotations

import pytest

from conftest import auth_headers, random_id


class TestProducts:
    async def _create(self, client, project, user, **fields):
        body = {"name": "Blend Aurora", "price": "12.50"}
        body.update(fields)
        return await client.post(
            f"/api/v1/projects/{project.id}/products", json=body, headers=auth_headers(user)
        )

    @pytest.mark.asyncio
    async def test_create_and_list(self, client, member, project):
        resp = await self._create(client, project, member, sku="AUR-01")
        assert resp.status_code == 201
        data = resp.json()
        assert data["price"] == "12.50"
        assert data["sku"] == "AUR-01"
        assert data["created_by"] == str(member.id)

        await self._create(client, project, member, name="Alfajor", price=None)
        resp = await client.get(f"/api/v1/projects/{project.id}/products", headers=auth_headers(member))
        assert [p["name"] for p in resp.json()] == ["Alfajor", "Blend Aurora"]

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, client, member, project):
        resp = await self._create(client, project, member, price="-1")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, member, project):
        product = (await self._create(client, project, member)).json()
        url = f"/api/v1/products/{product['id']}"

        resp = await client.patch(url, json={"price": "19.99"}, headers=auth_headers(member))
        assert resp.status_code == 200
        assert resp.json()["price"] == "19.99"
        assert resp.json()["name"] == "Blend Aurora"

        assert (await client.delete(url, headers=auth_headers(member))).status_code == 204
        assert (await client.get(url, headers=auth_headers(member))).status_code == 404

    @pytest.mark.asyncio
    async def test_null_name_rejected(self, client, member, project):
        product = (await self._create(client, project, member)).json()
        url = f"/api/v1/products/{product['id']}"
        resp = await client.patch(url, json={"name": None}, headers=auth_headers(member))
        assert resp.status_code == 422

        resp = await client.patch(url, json={"price": None}, headers=auth_headers(member))
        assert resp.status_code == 200
        assert resp.json()["price"] is None

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, member, outsider, project):
        product = (await self._create(client, project, member)).json()
        resp = await client.get(f"/api/v1/products/{product['id']}", headers=auth_headers(outsider))
        assert resp.status_code == 403

        resp = await self._create(client, project, outsider)
        assert resp.status_code == 403


class TestTeams:
    async def _create_team(self, client, admin, name="Diseño"):
        resp = await client.post(
            "/api/v1/teams", json={"name": name, "description": "Equipo creativo"}, headers=auth_headers(admin)
        )
        assert resp.status_code == 201
        return resp.json()

    @pytest.mark.asyncio
    async def test_create_requires_primary(self, client, member):
        resp = await client.post("/api/v1/teams", json={"name": "x"}, headers=auth_headers(member))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_everyone_can_read(self, client, admin, member):
        team = await self._create_team(client, admin)
        await self._create_team(client, admin, name="Contenido")

        resp = await client.get("/api/v1/teams", headers=auth_headers(member))
        assert [t["name"] for t in resp.json()] == ["Contenido", "Diseño"]

        resp = await client.get(f"/api/v1/teams/{team['id']}", headers=auth_headers(member))
        assert resp.status_code == 200
        assert resp.json()["members"] == []

    @pytest.mark.asyncio
    async def test_members(self, client, admin, member):
        team = await self._create_team(client, admin)
        url = f"/api/v1/teams/{team['id']}/members"

        resp = await client.post(url, json={"user_id": str(member.id), "role": "lead"}, headers=auth_headers(admin))
        assert resp.status_code == 201
        assert [(m["full_name"], m["role"]) for m in resp.json()["members"]] == [("Maria", "lead")]

        resp = await client.post(url, json={"user_id": str(member.id)}, headers=auth_headers(admin))
        assert resp.status_code == 409

        resp = await client.post(url, json={"user_id": random_id()}, headers=auth_headers(admin))
        assert resp.status_code == 404

        resp = await client.delete(f"{url}/{member.id}", headers=auth_headers(admin))
        assert resp.status_code == 204
        resp = await client.delete(f"{url}/{member.id}", headers=auth_headers(admin))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_update_and_delete(self, client, admin, member):
        team = await self._create_team(client, admin)
        await client.post(
            f"/api/v1/teams/{team['id']}/members", json={"user_id": str(member.id)}, headers=auth_headers(admin)
        )

        resp = await client.patch(
            f"/api/v1/teams/{team['id']}", json={"name": "Diseño gráfico"}, headers=auth_headers(admin)
        )
        assert resp.json()["name"] == "Diseño gráfico"
        assert len(resp.json()["members"]) == 1

        resp = await client.patch(
            f"/api/v1/teams/{team['id']}", json={"name": None}, headers=auth_headers(admin)
        )
        assert resp.status_code == 422

        resp = await client.delete(f"/api/v1/teams/{team['id']}", headers=auth_headers(admin))
        assert resp.status_code == 204
        resp = await client.get(f"/api/v1/teams/{team['id']}", headers=auth_headers(admin))
        assert resp.status_code == 404
