"""
Authentication endpoints.

- Username/email + password registration & login
- Primary account bootstrap guarded by a shared secret
- Password reset tokens
- OIDC login placeholder (Google)
- JWT session management (refresh, logout)
"""

from __future__ import annotations

import secrets
import uuid
from typing import Optional

import jwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    AuthenticatedUser,
    authorization_header,
    create_jwt,
    decode_jwt,
    extract_token,
    generate_csrf_token,
    is_jwt_revoked,
    require_user,
    revoke_jwt,
    token_ttl_seconds,
)
from app.core.config import get_settings
from app.core.database import get_session
from app.models.user import User
from app.services import users as user_service
from cohete_shared.schemas.common import MessageResponse, UserRole
from cohete_shared.schemas.users import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetResponse,
    PrimaryAccountRequest,
    RegisterRequest,
    UserRead,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

RESET_REQUESTED_MESSAGE = (
    "If an account matches, password reset instructions have been generated."
)

# Cookie config
COOKIE_KWARGS = {
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _start_session(response: Response, user: User) -> None:
    """Issue a JWT for the user and set the session and CSRF cookies."""
    token, _jti = create_jwt(user_id=user.id, role=user.role, is_primary=user.is_primary)
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=True, **COOKIE_KWARGS)
    response.set_cookie(key=CSRF_COOKIE, value=generate_csrf_token(), httponly=False, **COOKIE_KWARGS)


def _clear_session(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")


# ---------------------------------------------------------------------------
# Registration & login
# ---------------------------------------------------------------------------


@router.post("/register", response_model=UserRead, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Create an account and sign it in. The first account becomes a primary admin."""
    user = await user_service.register_user(session, body)
    _start_session(response, user)
    log.info("user.registered", user_id=str(user.id), username=user.username)
    return user


@router.post("/login", response_model=UserRead)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with username (or email) and password."""
    user = await user_service.authenticate(session, body.identifier, body.password)
    _start_session(response, user)
    log.info("auth.login_success", user_id=str(user.id))
    return user


@router.get("/me", response_model=UserRead)
async def me(auth: AuthenticatedUser = Depends(require_user)):
    return auth.user


@router.post("/create-primary-account", response_model=UserRead, status_code=201)
async def create_primary_account(
    body: PrimaryAccountRequest,
    session: AsyncSession = Depends(get_session),
):
    """Bootstrap an agency administrator when the caller knows the shared secret."""
    if not secrets.compare_digest(body.secret_key.encode(), settings.primary_account_secret.encode()):
        log.warning("auth.primary_account_denied", username=body.username)
        raise HTTPException(status_code=403, detail="Invalid secret key")
    user = await user_service.create_user(
        session,
        full_name=body.full_name,
        username=body.username,
        password=body.password,
        role=UserRole.ADMIN,
        is_primary=True,
    )
    return user


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/request-password-reset", response_model=PasswordResetResponse)
async def request_password_reset(
    body: PasswordResetRequest,
    session: AsyncSession = Depends(get_session),
):
    """Always answers with the same message so accounts cannot be enumerated."""
    token = await user_service.create_reset_token(session, body.identifier)
    return PasswordResetResponse(
        message=RESET_REQUESTED_MESSAGE,
        debug_token=token if settings.debug else None,
    )


@router.get("/verify-reset-token/{token}")
async def verify_reset_token(token: str, session: AsyncSession = Depends(get_session)):
    await user_service.get_valid_reset_token(session, token)
    return {"valid": True}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    body: PasswordResetConfirm,
    session: AsyncSession = Depends(get_session),
):
    await user_service.reset_password(session, body.token, body.new_password)
    return MessageResponse(message="Password has been reset")


# ---------------------------------------------------------------------------
# OIDC Login (Placeholder)
# ---------------------------------------------------------------------------


@router.get("/login/oidc")
async def oidc_login(provider: str):
    """
    Initiate OIDC login flow.

    Placeholder: returns the provider's authorization URL without redirecting.
    """
    if provider != "google":
        raise HTTPException(status_code=400, detail="Unsupported OIDC provider")

    auth_url = (
        "https://accounts.google.com/o/oauth2/v2/auth"
        f"?client_id={settings.google_client_id}"
        "&response_type=code"
        "&scope=openid email profile"
    )
    return {"provider": provider, "authorization_url": auth_url, "status": "placeholder"}


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=MessageResponse)
async def refresh_session(
    request: Request,
    response: Response,
    authorization: Optional[str] = Depends(authorization_header),
    session: AsyncSession = Depends(get_session),
):
    """Issue a new session token and revoke the current one."""
    token = extract_token(request, authorization)
    if not token:
        raise HTTPException(status_code=401, detail="No active session")

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    user = await session.get(User, uuid.UUID(payload["sub"]))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    _start_session(response, user)
    if jti:
        await revoke_jwt(jti, token_ttl_seconds(payload))

    return MessageResponse(message="Session refreshed")


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Depends(authorization_header),
):
    """Invalidate the current session."""
    token = extract_token(request, authorization)
    if token:
        try:
            payload = decode_jwt(token)
        except jwt.PyJWTError:
            payload = {}  # expired or forged; only the cookies need clearing
        if payload.get("jti"):
            await revoke_jwt(payload["jti"], token_ttl_seconds(payload))

    _clear_session(response)
    return MessageResponse(message="Logged out")
