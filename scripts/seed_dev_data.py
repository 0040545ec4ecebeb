#!/usr/bin/env python3
"""Seed a development database with a primary user, a creator, a project with
its brand analysis, and a handful of tasks.

Usage:
    python scripts/seed_dev_data.py

Reads COHETE_DATABASE_URL (defaults to localhost). Safe to run twice.
"""

import asyncio
import os
import sys
import uuid
from datetime import date

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(ROOT, "packages", "server"))
sys.path.insert(0, os.path.join(ROOT, "packages", "shared"))

from app.core.auth import hash_password  # noqa: E402
from app.core.database import get_session_context  # noqa: E402
from app.models.project import AnalysisResult, Project, ProjectMember  # noqa: E402
from app.models.task import Task  # noqa: E402
from app.models.user import User  # noqa: E402

# Deterministic UUIDs for reproducibility
ADMIN_ID = uuid.UUID("00000000-0000-0000-0000-000000000010")
CREATOR_ID = uuid.UUID("00000000-0000-0000-0000-000000000011")
PROJECT_ID = uuid.UUID("00000000-0000-0000-0000-000000000100")
TASK_IDS = [uuid.UUID(f"00000000-0000-0000-0000-0000000002{i:02d}") for i in range(4)]

DEV_PASSWORD = "cohete-dev-password"

TASKS = [
    ("Definir pilares de contenido", "todo", "high"),
    ("Diseñar plantillas para Instagram", "in_progress", "medium"),
    ("Aprobar cronograma quincenal", "upcoming", "medium"),
    ("Reporte de métricas de marzo", "completed", "low"),
]


async def seed():
    async with get_session_context() as session:
        if await session.get(User, ADMIN_ID):
            print("Seed data already present.")
            return

        session.add_all([
            User(
                id=ADMIN_ID,
                full_name="Ana Administradora",
                username="ana",
                email="ana@example.com",
                password_hash=hash_password(DEV_PASSWORD),
                is_primary=True,
                role="admin",
            ),
            User(
                id=CREATOR_ID,
                full_name="Carlos Creador",
                username="carlos",
                email="carlos@example.com",
                password_hash=hash_password(DEV_PASSWORD),
                role="content_creator",
            ),
        ])
        await session.flush()

        session.add(Project(
            id=PROJECT_ID,
            name="Lanzamiento Café Aurora",
            client="Café Aurora",
            description="Campaña de lanzamiento de la nueva línea de café de especialidad.",
            start_date=date(2026, 3, 1),
            status="active",
            created_by=ADMIN_ID,
        ))
        await session.flush()

        session.add_all([
            ProjectMember(project_id=PROJECT_ID, user_id=ADMIN_ID, role="owner"),
            ProjectMember(project_id=PROJECT_ID, user_id=CREATOR_ID, role="member"),
            AnalysisResult(
                project_id=PROJECT_ID,
                mission="Llevar café de origen a cada mañana.",
                target_audience="Profesionales urbanos de 25 a 40 años",
                brand_tone="Cercano y cálido",
                social_networks=[
                    {"name": "Instagram", "selected": True, "posts_per_month": 12},
                    {"name": "Facebook", "selected": True, "posts_per_month": 8},
                ],
            ),
        ])

        for position, (task_id, (title, group, priority)) in enumerate(zip(TASK_IDS, TASKS)):
            session.add(Task(
                id=task_id,
                project_id=PROJECT_ID,
                assigned_to_id=CREATOR_ID,
                created_by_id=ADMIN_ID,
                title=title,
                status="completed" if group == "completed" else "pending",
                priority=priority,
                group=group,
                position=position,
                progress=100 if group == "completed" else 0,
            ))

    print(f"Seeded users 'ana' (primary) and 'carlos' with password '{DEV_PASSWORD}'.")


if __name__ == "__main__":
    asyncio.run(seed())
