"""
Shared fixtures: in-memory SQLite database, fake Redis, scripted AI client
and helpers to create users and projects.
"""

from __future__ import annotations

import os
import tempfile

# Must be set before the app (and its engine) is imported
os.environ.setdefault("COHETE_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("COHETE_ENVIRONMENT", "test")
os.environ.setdefault("COHETE_UPLOAD_DIR", tempfile.mkdtemp(prefix="cohete-uploads-"))

import uuid
from typing import Optional
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.ai.client import AIProviderError, get_ai_client
from app.core.auth import create_jwt, hash_password
from app.core.config import get_settings
from app.core.database import get_session, get_session_factory
from app.main import app as fastapi_app
from app.models.project import AnalysisResult, Project, ProjectMember
from app.models.user import User

TEST_PASSWORD = "correct-horse-battery"
# Hashed once; bcrypt at cost 12 is too slow to repeat per user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeRedis:
    """The handful of Redis commands the app uses, kept in memory."""

    def __init__(self):
        self.store: dict[str, str] = {}
        self.published: list[tuple[str, str]] = []

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value

    async def exists(self, key: str) -> int:
        return 1 if key in self.store else 0

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1


class FakeAIClient:
    """Returns queued replies in order, then ``default_reply``; records prompts."""

    def __init__(self):
        self.replies: list[str] = []
        self.default_reply = ""
        self.prompts: list[str] = []
        self.image_prompts: list[str] = []
        self.image_url = "https://images.example.com/generated.png"
        self.error: Optional[AIProviderError] = None

    def queue(self, *replies: str) -> None:
        self.replies.extend(replies)

    def _next(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply

    async def generate_text(self, prompt: str, temperature: float = 0.7, max_tokens: int = 2000) -> str:
        return self._next(prompt)

    async def generate_text_with_image(
        self, prompt: str, image_b64: str, mime_type: str = "image/jpeg", **kwargs
    ) -> str:
        return self._next(prompt)

    async def generate_image(self, prompt: str) -> str:
        self.image_prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.image_url


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """A session for arranging and inspecting rows directly."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# App client
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def ai():
    return FakeAIClient()


@pytest.fixture
async def client(session_factory, fake_redis, ai, tmp_path, monkeypatch):
    async def _get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _get_session
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    fastapi_app.dependency_overrides[get_ai_client] = lambda: ai
    monkeypatch.setattr(get_settings(), "upload_dir", str(tmp_path / "uploads"))

    async def _get_redis():
        return fake_redis

    with patch("app.core.auth.get_redis", _get_redis), patch("app.core.events.get_redis", _get_redis):
        async with AsyncClient(
            transport=ASGITransport(app=fastapi_app), base_url="http://test"
        ) as ac:
            yield ac

    fastapi_app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users & projects
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(session_factory):
    async def _make_user(
        username: str,
        *,
        is_primary: bool = False,
        role: str = "content_creator",
        email: Optional[str] = None,
        full_name: Optional[str] = None,
    ) -> User:
        async with session_factory() as session:
            user = User(
                full_name=full_name or username.title(),
                username=username,
                email=email,
                password_hash=TEST_PASSWORD_HASH,
                is_primary=is_primary,
                role=role,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
async def admin(make_user):
    return await make_user("admin", is_primary=True, role="admin", email="admin@example.com")


@pytest.fixture
async def member(make_user):
    return await make_user("maria", email="maria@example.com")


@pytest.fixture
async def outsider(make_user):
    return await make_user("oscar")


def auth_headers(user: User) -> dict:
    token, _ = create_jwt(user.id, user.role, user.is_primary)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_project(session_factory):
    async def _make_project(
        creator: User,
        *,
        members: tuple[User, ...] = (),
        name: str = "Lanzamiento Café Aurora",
        client_name: str = "Café Aurora",
        social_networks: Optional[list] = None,
    ) -> Project:
        async with session_factory() as session:
            project = Project(name=name, client=client_name, created_by=creator.id)
            session.add(project)
            await session.flush()
            session.add(ProjectMember(project_id=project.id, user_id=creator.id, role="owner"))
            for user in members:
                session.add(ProjectMember(project_id=project.id, user_id=user.id))
            if social_networks is not None:
                session.add(AnalysisResult(
                    project_id=project.id,
                    brand_tone="Cercano",
                    social_networks=social_networks,
                ))
            await session.commit()
            return project

    return _make_project


@pytest.fixture
async def project(make_project, admin, member):
    return await make_project(admin, members=(member,))


def random_id() -> str:
    return str(uuid.uuid4())
