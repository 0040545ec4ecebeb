"""
Tests for project CRUD, brand analysis, membership and image analysis.
"""

from __future__ import annotations

import pytest
from sqlmodel import select

from app.models.notification import Notification
from app.models.project import ProjectMember
from conftest import auth_headers, random_id


PROJECT_BODY = {
    "name": "Campaña Verano",
    "client": "Heladería Polo",
    "description": "Lanzamiento de sabores de temporada",
    "start_date": "2025-06-01",
    "end_date": "2025-08-31",
}


class TestProjectCRUD:
    @pytest.mark.asyncio
    async def test_create_adds_creator_as_owner(self, client, admin):
        resp = await client.post(
            "/api/v1/projects",
            json=dict(PROJECT_BODY, analysis={"brand_tone": "Divertido", "keywords": "helado, verano"}),
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Campaña Verano"
        assert data["status"] == "active"
        assert data["created_by"] == str(admin.id)
        assert data["analysis"]["brand_tone"] == "Divertido"

        members = await client.get(
            f"/api/v1/projects/{data['id']}/members", headers=auth_headers(admin)
        )
        assert [(m["username"], m["role"]) for m in members.json()] == [("admin", "owner")]

    @pytest.mark.asyncio
    async def test_create_requires_primary(self, client, member):
        resp = await client.post("/api/v1/projects", json=PROJECT_BODY, headers=auth_headers(member))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_membership(self, client, make_project, admin, member, outsider, project):
        await make_project(admin, name="Proyecto interno")

        resp = await client.get("/api/v1/projects", headers=auth_headers(admin))
        assert len(resp.json()) == 2

        resp = await client.get("/api/v1/projects", headers=auth_headers(member))
        assert [p["id"] for p in resp.json()] == [str(project.id)]

        resp = await client.get("/api/v1/projects", headers=auth_headers(outsider))
        assert resp.json() == []

    @pytest.mark.asyncio
    async def test_get_unknown_project(self, client, admin):
        resp = await client.get(f"/api/v1/projects/{random_id()}", headers=auth_headers(admin))
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_update(self, client, admin, project):
        resp = await client.patch(
            f"/api/v1/projects/{project.id}",
            json={"status": "on_hold", "description": "Pausado por el cliente"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        assert resp.json()["status"] == "on_hold"
        assert resp.json()["name"] == project.name

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["name", "client", "status"])
    async def test_null_for_required_column_rejected(self, client, admin, project, field):
        resp = await client.patch(
            f"/api/v1/projects/{project.id}", json={field: None}, headers=auth_headers(admin)
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_member_cannot_update(self, client, member, project):
        resp = await client.patch(
            f"/api/v1/projects/{project.id}", json={"name": "Otro"}, headers=auth_headers(member)
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_cascades_members(self, client, db, admin, project):
        resp = await client.delete(f"/api/v1/projects/{project.id}", headers=auth_headers(admin))
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers(admin))
        assert resp.status_code == 404

        result = await db.execute(select(ProjectMember).where(ProjectMember.project_id == project.id))
        assert result.first() is None


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates(self, client, admin, project):
        url = f"/api/v1/projects/{project.id}/analysis"
        resp = await client.patch(
            url,
            json={"mission": "Alegrar las tardes", "social_networks": [{"name": "Instagram"}]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200
        first_id = resp.json()["id"]

        resp = await client.patch(url, json={"vision": "Ser la cafetería del barrio"}, headers=auth_headers(admin))
        data = resp.json()
        assert data["id"] == first_id
        assert data["mission"] == "Alegrar las tardes"
        assert data["vision"] == "Ser la cafetería del barrio"
        assert data["social_networks"] == [{"name": "Instagram"}]

    @pytest.mark.asyncio
    async def test_shown_in_project_detail(self, client, admin, member, project):
        await client.patch(
            f"/api/v1/projects/{project.id}/analysis",
            json={"brand_tone": "Cercano"},
            headers=auth_headers(admin),
        )
        resp = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers(member))
        assert resp.json()["analysis"]["brand_tone"] == "Cercano"


class TestMembers:
    @pytest.mark.asyncio
    async def test_add_members_notifies_and_skips_existing(self, client, db, admin, member, outsider, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/members",
            json={"user_ids": [str(member.id), str(outsider.id)]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        assert resp.json()["message"] == "1 member(s) added"

        result = await db.execute(select(Notification).where(Notification.user_id == outsider.id))
        notification = result.scalar_one()
        assert notification.type == "assignment"
        assert notification.related_entity_id == project.id

        resp = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers(outsider))
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_add_unknown_user(self, client, admin, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/members",
            json={"user_ids": [random_id()]},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_remove_member_revokes_access(self, client, admin, member, project):
        resp = await client.delete(
            f"/api/v1/projects/{project.id}/members/{member.id}", headers=auth_headers(admin)
        )
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers(member))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_remove_non_member(self, client, admin, outsider, project):
        resp = await client.delete(
            f"/api/v1/projects/{project.id}/members/{outsider.id}", headers=auth_headers(admin)
        )
        assert resp.status_code == 404


class TestImageAnalysis:
    @pytest.mark.asyncio
    async def test_structured_sections(self, client, ai, member, project):
        ai.queue(
            "1. Elementos visuales: Logo naranja sobre fondo blanco\n"
            "2. Mensaje principal: Frescura y cercanía\n"
        )
        resp = await client.post(
            f"/api/v1/projects/{project.id}/analyze-image",
            files={"image": ("post.jpg", b"\xff\xd8 fake jpeg", "image/jpeg")},
            data={"analysis_type": "brand"},
            headers=auth_headers(member),
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["analysis_type"] == "brand"
        assert data["structured_data"] == {
            "Elementos visuales": "Logo naranja sobre fondo blanco",
            "Mensaje principal": "Frescura y cercanía",
        }
        assert data["image_info"] == {"filename": "post.jpg", "content_type": "image/jpeg", "size": 12}
        assert "branding" in ai.prompts[0]

    @pytest.mark.asyncio
    async def test_defaults_to_content(self, client, ai, member, project):
        ai.queue("Una imagen luminosa.")
        resp = await client.post(
            f"/api/v1/projects/{project.id}/analyze-image",
            files={"image": ("post.png", b"png-bytes", "image/png")},
            headers=auth_headers(member),
        )
        assert resp.status_code == 200
        assert resp.json()["analysis_type"] == "content"
        assert resp.json()["structured_data"] == {"summary": "Una imagen luminosa."}

    @pytest.mark.asyncio
    async def test_invalid_type(self, client, member, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/analyze-image",
            files={"image": ("post.png", b"png-bytes", "image/png")},
            data={"analysis_type": "vibes"},
            headers=auth_headers(member),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_non_image_rejected(self, client, member, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/analyze-image",
            files={"image": ("brief.pdf", b"%PDF-1.4", "application/pdf")},
            headers=auth_headers(member),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, outsider, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/analyze-image",
            files={"image": ("post.png", b"png-bytes", "image/png")},
            headers=auth_headers(outsider),
        )
        assert resp.status_code == 403
