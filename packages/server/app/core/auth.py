"""
Authentication and authorization for Cohete Workflow.

Supports:
- Username/email + password login with bcrypt hashes
- JWT session cookie (or Authorization: Bearer) with Redis revocation list
- Primary-user and project-access authorization checks
"""

from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import get_redis
from app.models.project import Project, ProjectMember
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "cohete_session"
CSRF_COOKIE = "cohete_csrf"
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72  # bcrypt input limit

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash. Input bcrypt cannot hash never matches."""
    encoded = password.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(encoded, hashed.encode())


def validate_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
        )


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    role: str,
    is_primary: bool,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "role": role,
        "is_primary": is_primary,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


def token_ttl_seconds(payload: dict) -> int:
    """Seconds until the token expires (at least 1), used as the revocation TTL."""
    exp = payload.get("exp")
    if not exp:
        return settings.jwt_expire_minutes * 60
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> None:
    """Add a JWT ID to the revocation list in Redis."""
    redis = await get_redis()
    await redis.setex(f"jwt:revoked:{jti}", ttl_seconds, "1")


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    redis = await get_redis()
    return await redis.exists(f"jwt:revoked:{jti}") > 0


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for the authenticated user and the token it came with."""

    def __init__(self, user: User, jti: Optional[str] = None):
        self.user = user
        self.jti = jti
        self.user_id = user.id
        self.role = user.role
        self.is_primary = user.is_primary


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Bearer header first, then the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


async def get_authenticated_user(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency."""
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    auth_user = AuthenticatedUser(user=user, jti=jti)
    request.state.auth = auth_user
    return auth_user


# ---------------------------------------------------------------------------
# Authorization dependencies
# ---------------------------------------------------------------------------

async def require_user(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any signed-in user can access this endpoint."""
    return auth


async def require_primary(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Requires a primary (agency administrator) account."""
    if not auth.is_primary:
        raise HTTPException(status_code=403, detail="Primary user access required")
    return auth


async def has_project_access(
    project: Project, auth: AuthenticatedUser, session: AsyncSession
) -> bool:
    """Primary users, the creator and listed members can access a project."""
    if auth.is_primary or project.created_by == auth.user_id:
        return True
    result = await session.execute(
        select(ProjectMember.id).where(
            ProjectMember.project_id == project.id,
            ProjectMember.user_id == auth.user_id,
        )
    )
    return result.first() is not None


async def get_accessible_project(
    project_id: uuid.UUID, auth: AuthenticatedUser, session: AsyncSession
) -> Project:
    """Fetch a project or raise 404, then enforce access (403)."""
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if not await has_project_access(project, auth, session):
        log.warning("auth.project_forbidden", project_id=str(project_id), user_id=str(auth.user_id))
        raise HTTPException(status_code=403, detail="You do not have access to this project")
    return project
