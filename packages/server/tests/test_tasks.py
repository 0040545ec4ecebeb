"""
Tests for task management: CRUD, board ordering, subtasks, comments, attachments,
dependencies (cycle detection), time tracking and AI-suggested tasks.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from sqlmodel import select

from app.ai.analyzer import STARTER_TASKS
from app.core.config import get_settings
from app.models.notification import Notification
from conftest import auth_headers, random_id


async def _create(client, project, user, **fields) -> dict:
    body = {"title": "Tarea"}
    body.update(fields)
    resp = await client.post(
        f"/api/v1/projects/{project.id}/tasks", json=body, headers=auth_headers(user)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

class TestTaskCRUD:
    @pytest.mark.asyncio
    async def test_create_defaults(self, client, member, project):
        task = await _create(client, project, member, title="Escribir copy", tags=["copy"])
        assert task["status"] == "pending"
        assert task["priority"] == "medium"
        assert task["group"] == "todo"
        assert task["created_by_id"] == str(member.id)
        assert task["ai_generated"] is False
        assert task["tags"] == ["copy"]

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, outsider, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/tasks", json={"title": "x"}, headers=auth_headers(outsider)
        )
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_assignee(self, client, member, project):
        resp = await client.post(
            f"/api/v1/projects/{project.id}/tasks",
            json={"title": "x", "assigned_to_id": random_id()},
            headers=auth_headers(member),
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_list_orders_by_board_group(self, client, member, project):
        await _create(client, project, member, title="Hecha", group="completed")
        await _create(client, project, member, title="Bloqueada", group="blocked")
        await _create(client, project, member, title="Pendiente B", group="todo", position=2)
        await _create(client, project, member, title="Pendiente A", group="todo", position=1)
        await _create(client, project, member, title="En curso", group="in_progress")

        resp = await client.get(f"/api/v1/projects/{project.id}/tasks", headers=auth_headers(member))
        assert [t["title"] for t in resp.json()] == [
            "Pendiente A",
            "Pendiente B",
            "En curso",
            "Bloqueada",
            "Hecha",
        ]

    @pytest.mark.asyncio
    async def test_list_filters(self, client, admin, member, project):
        await _create(client, project, admin, title="Para María", assigned_to_id=str(member.id))
        await _create(client, project, admin, title="Urgente", group="in_progress")

        resp = await client.get(
            f"/api/v1/projects/{project.id}/tasks",
            params={"assigned_to_id": str(member.id)},
            headers=auth_headers(member),
        )
        assert [t["title"] for t in resp.json()] == ["Para María"]

        resp = await client.get(
            f"/api/v1/projects/{project.id}/tasks",
            params={"group": "in_progress"},
            headers=auth_headers(member),
        )
        assert [t["title"] for t in resp.json()] == ["Urgente"]

    @pytest.mark.asyncio
    async def test_completion_stamps_and_clears(self, client, member, project):
        task = await _create(client, project, member)
        url = f"/api/v1/tasks/{task['id']}"

        resp = await client.patch(url, json={"status": "completed"}, headers=auth_headers(member))
        data = resp.json()
        assert data["completed_at"] is not None
        assert data["progress"] == 100

        resp = await client.patch(url, json={"status": "in_progress"}, headers=auth_headers(member))
        assert resp.json()["completed_at"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "priority", "group", "position", "tags", "status"])
    async def test_null_for_required_column_rejected(self, client, member, project, field):
        task = await _create(client, project, member)
        resp = await client.patch(
            f"/api/v1/tasks/{task['id']}", json={field: None}, headers=auth_headers(member)
        )
        assert resp.status_code == 422

        resp = await client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers(member))
        assert resp.json()["title"] == "Tarea"

    @pytest.mark.asyncio
    async def test_null_clears_optional_columns(self, client, member, project):
        task = await _create(
            client, project, member, description="Borrador", assigned_to_id=str(member.id)
        )
        resp = await client.patch(
            f"/api/v1/tasks/{task['id']}",
            json={"description": None, "assigned_to_id": None},
            headers=auth_headers(member),
        )
        assert resp.status_code == 200
        assert resp.json()["description"] is None
        assert resp.json()["assigned_to_id"] is None

    @pytest.mark.asyncio
    async def test_assignment_notifies_assignee(self, client, db, admin, member, project, fake_redis):
        task = await _create(client, project, admin)
        resp = await client.patch(
            f"/api/v1/tasks/{task['id']}",
            json={"assigned_to_id": str(member.id)},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 200

        result = await db.execute(select(Notification).where(Notification.user_id == member.id))
        notification = result.scalar_one()
        assert notification.type == "assignment"
        assert notification.related_entity_type == "task"

        channel, payload = fake_redis.published[-1]
        assert channel == f"cohete:notifications:{member.id}"
        assert json.loads(payload)["title"] == "Nueva tarea asignada"

    @pytest.mark.asyncio
    async def test_self_assignment_is_silent(self, client, db, member, project):
        await _create(client, project, member, assigned_to_id=str(member.id))
        result = await db.execute(select(Notification))
        assert result.first() is None

    @pytest.mark.asyncio
    async def test_delete(self, client, member, project):
        task = await _create(client, project, member)
        resp = await client.delete(f"/api/v1/tasks/{task['id']}", headers=auth_headers(member))
        assert resp.status_code == 204

        resp = await client.get(f"/api/v1/tasks/{task['id']}", headers=auth_headers(member))
        assert resp.status_code == 404


class TestSubtasks:
    @pytest.mark.asyncio
    async def test_subtasks_hidden_from_project_list(self, client, member, project):
        parent = await _create(client, project, member, title="Campaña")
        resp = await client.post(
            f"/api/v1/tasks/{parent['id']}/subtasks",
            json={"title": "Copy del post"},
            headers=auth_headers(member),
        )
        assert resp.status_code == 201
        assert resp.json()["parent_task_id"] == parent["id"]

        resp = await client.get(f"/api/v1/tasks/{parent['id']}/subtasks", headers=auth_headers(member))
        assert [t["title"] for t in resp.json()] == ["Copy del post"]

        resp = await client.get(f"/api/v1/projects/{project.id}/tasks", headers=auth_headers(member))
        assert [t["title"] for t in resp.json()] == ["Campaña"]


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class TestComments:
    @pytest.mark.asyncio
    async def test_comment_notifies_assignee(self, client, db, admin, member, project):
        task = await _create(client, project, member, assigned_to_id=str(member.id))
        resp = await client.post(
            f"/api/v1/tasks/{task['id']}/comments",
            json={"content": "¿Revisamos el tono?"},
            headers=auth_headers(admin),
        )
        assert resp.status_code == 201
        assert resp.json()["user_id"] == str(admin.id)

        result = await db.execute(
            select(Notification).where(Notification.user_id == member.id, Notification.type == "comment")
        )
        assert "comentó" in result.scalar_one().message

        resp = await client.get(f"/api/v1/tasks/{task['id']}/comments", headers=auth_headers(member))
        assert [c["content"] for c in resp.json()] == ["¿Revisamos el tono?"]

    @pytest.mark.asyncio
    async def test_author_deletes_comment(self, client, member, project):
        task = await _create(client, project, member)
        comment = (await client.post(
            f"/api/v1/tasks/{task['id']}/comments", json={"content": "borrar"}, headers=auth_headers(member)
        )).json()

        resp = await client.delete(f"/api/v1/tasks/comments/{comment['id']}", headers=auth_headers(member))
        assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_outsider_cannot_delete_comment(self, client, member, outsider, project):
        task = await _create(client, project, member)
        comment = (await client.post(
            f"/api/v1/tasks/{task['id']}/comments", json={"content": "mío"}, headers=auth_headers(member)
        )).json()

        resp = await client.delete(f"/api/v1/tasks/comments/{comment['id']}", headers=auth_headers(outsider))
        assert resp.status_code == 403


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

class TestAttachments:
    @pytest.mark.asyncio
    async def test_upload_list_and_delete(self, client, member, project):
        task = await _create(client, project, member)
        url = f"/api/v1/tasks/{task['id']}/attachments"

        resp = await client.post(
            url,
            files={"file": ("brief.pdf", b"%PDF-1.4 brief", "application/pdf")},
            headers=auth_headers(member),
        )
        assert resp.status_code == 201
        attachment = resp.json()
        assert attachment["file_name"] == "brief.pdf"
        assert attachment["file_size"] == 14
        assert attachment["mime_type"] == "application/pdf"
        assert attachment["uploaded_by"] == str(member.id)
        assert attachment["file_url"].startswith(f"tasks/{task['id']}/")
        stored = Path(get_settings().upload_dir) / attachment["file_url"]
        assert stored.exists()

        resp = await client.get(url, headers=auth_headers(member))
        assert [a["id"] for a in resp.json()] == [attachment["id"]]

        resp = await client.delete(f"/api/v1/tasks/attachments/{attachment['id']}", headers=auth_headers(member))
        assert resp.status_code == 204
        assert not stored.exists()
        assert (await client.get(url, headers=auth_headers(member))).json() == []

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, client, member, project):
        task = await _create(client, project, member)
        resp = await client.post(
            f"/api/v1/tasks/{task['id']}/attachments",
            files={"file": ("vacio.txt", b"", "text/plain")},
            headers=auth_headers(member),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_outsider_forbidden(self, client, member, outsider, project):
        task = await _create(client, project, member)
        attachment = (await client.post(
            f"/api/v1/tasks/{task['id']}/attachments",
            files={"file": ("logo.png", b"png-bytes", "image/png")},
            headers=auth_headers(member),
        )).json()

        resp = await client.get(f"/api/v1/tasks/{task['id']}/attachments", headers=auth_headers(outsider))
        assert resp.status_code == 403
        resp = await client.delete(f"/api/v1/tasks/attachments/{attachment['id']}", headers=auth_headers(outsider))
        assert resp.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_unknown(self, client, member):
        resp = await client.delete(f"/api/v1/tasks/attachments/{random_id()}", headers=auth_headers(member))
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class TestDependencies:
    async def _dep(self, client, user, task, other):
        return await client.post(
            f"/api/v1/tasks/{task['id']}/dependencies",
            json={"depends_on_task_id": other["id"]},
            headers=auth_headers(user),
        )

    @pytest.mark.asyncio
    async def test_add_and_list(self, client, member, project):
        a = await _create(client, project, member, title="A")
        b = await _create(client, project, member, title="B")

        resp = await self._dep(client, member, a, b)
        assert resp.status_code == 201
        assert resp.json() == {"task_id": a["id"], "depends_on_task_id": b["id"]}

        resp = await client.get(f"/api/v1/tasks/{a['id']}/dependencies", headers=auth_headers(member))
        assert len(resp.json()) == 1

    @pytest.mark.asyncio
    async def test_self_dependency(self, client, member, project):
        a = await _create(client, project, member)
        resp = await self._dep(client, member, a, a)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate(self, client, member, project):
        a = await _create(client, project, member, title="A")
        b = await _create(client, project, member, title="B")
        await self._dep(client, member, a, b)
        resp = await self._dep(client, member, a, b)
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_cycle_detected(self, client, member, project):
        a = await _create(client, project, member, title="A")
        b = await _create(client, project, member, title="B")
        c = await _create(client, project, member, title="C")
        assert (await self._dep(client, member, a, b)).status_code == 201
        assert (await self._dep(client, member, b, c)).status_code == 201

        resp = await self._dep(client, member, c, a)
        assert resp.status_code == 409
        assert "circular" in resp.json()["detail"]

    @pytest.mark.asyncio
    async def test_cross_project_rejected(self, client, make_project, admin, project):
        other_project = await make_project(admin, name="Otro")
        a = await _create(client, project, admin, title="A")
        b = await _create(client, other_project, admin, title="B")
        resp = await self._dep(client, admin, a, b)
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_remove(self, client, member, project):
        a = await _create(client, project, member, title="A")
        b = await _create(client, project, member, title="B")
        await self._dep(client, member, a, b)

        url = f"/api/v1/tasks/{a['id']}/dependencies/{b['id']}"
        assert (await client.delete(url, headers=auth_headers(member))).status_code == 204
        assert (await client.delete(url, headers=auth_headers(member))).status_code == 404


# ---------------------------------------------------------------------------
# Time tracking
# ---------------------------------------------------------------------------

class TestTimeEntries:
    @pytest.mark.asyncio
    async def test_logged_interval(self, client, member, project):
        task = await _create(client, project, member)
        resp = await client.post(
            f"/api/v1/tasks/{task['id']}/time-entries",
            json={
                "description": "Sesión de diseño",
                "start_time": "2025-03-03T09:00:00Z",
                "end_time": "2025-03-03T10:30:00Z",
            },
            headers=auth_headers(member),
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["duration_minutes"] == 90
        assert data["is_running"] is False

    @pytest.mark.asyncio
    async def test_end_before_start(self, client, member, project):
        task = await _create(client, project, member)
        resp = await client.post(
            f"/api/v1/tasks/{task['id']}/time-entries",
            json={"start_time": "2025-03-03T10:00:00Z", "end_time": "2025-03-03T09:00:00Z"},
            headers=auth_headers(member),
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_timer_start_and_stop(self, client, member, project):
        task = await _create(client, project, member)
        resp = await client.post(
            f"/api/v1/tasks/{task['id']}/time-entries", json={}, headers=auth_headers(member)
        )
        entry = resp.json()
        assert entry["is_running"] is True

        stop_url = f"/api/v1/tasks/{task['id']}/time-entries/{entry['id']}/stop"
        resp = await client.post(stop_url, headers=auth_headers(member))
        assert resp.status_code == 200
        assert resp.json()["is_running"] is False
        assert resp.json()["duration_minutes"] == 0

        resp = await client.post(stop_url, headers=auth_headers(member))
        assert resp.status_code == 409

        resp = await client.get(f"/api/v1/tasks/{task['id']}/time-entries", headers=auth_headers(member))
        assert len(resp.json()) == 1


# ---------------------------------------------------------------------------
# AI suggestions
# ---------------------------------------------------------------------------

class TestGenerateTasks:
    @pytest.mark.asyncio
    async def test_creates_suggested_tasks(self, client, ai, member, project):
        ai.queue(json.dumps({"tasks": [
            {"title": "Calendario editorial", "description": "Plan mensual", "priority": "high", "tags": ["plan"]},
            {"title": "Sesión de fotos", "priority": "whenever", "tags": "fotos, producto"},
            {"description": "sin título"},
        ]}))
        resp = await client.post(
            f"/api/v1/projects/{project.id}/generate-tasks", headers=auth_headers(member)
        )
        assert resp.status_code == 201
        tasks = resp.json()
        assert [t["title"] for t in tasks] == ["Calendario editorial", "Sesión de fotos"]
        assert tasks[1]["priority"] == "medium"
        assert tasks[1]["tags"] == ["fotos", "producto"]
        assert all(t["ai_generated"] for t in tasks)
        assert [t["position"] for t in tasks] == [0, 1]
        assert project.name in ai.prompts[0]

    @pytest.mark.asyncio
    async def test_unusable_reply_falls_back_to_starter_tasks(self, client, ai, member, project):
        ai.queue("No puedo ayudar con eso.")
        resp = await client.post(
            f"/api/v1/projects/{project.id}/generate-tasks", headers=auth_headers(member)
        )
        assert resp.status_code == 201
        assert [t["title"] for t in resp.json()] == [t["title"] for t in STARTER_TASKS]
