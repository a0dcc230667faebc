"""
Authentication endpoints.

- Name/email/password registration
- Email/password login issuing a JWT session
- Logout (clears the session cookies)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from forum.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    create_jwt,
    generate_csrf_token,
    hash_password,
    verify_password,
)
from forum.core.config import get_settings
from forum.core.database import get_session
from forum.models.user import User
from forum_shared.schemas.users import AuthResponse, LoginRequest, RegisterRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session JWT and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    response.set_cookie(
        key=CSRF_COOKIE,
        value=csrf,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
        max_age=settings.jwt_expire_minutes * 60,
    )


def _start_session(response: Response, user: User) -> str:
    token, _jti = create_jwt(user_id=user.id, name=user.name)
    _set_session_cookies(response, token, generate_csrf_token())
    return token


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user. The name becomes the user's @mention handle."""
    result = await session.execute(
        select(User).where(or_(User.email == body.email, User.name == body.name))
    )
    existing = result.scalars().first()
    if existing:
        field = "Email" if existing.email == body.email else "Name"
        raise HTTPException(status_code=409, detail=f"{field} already registered")

    user = User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
    )
    session.add(user)
    await session.flush()

    token = _start_session(response, user)
    log.info("user.registered", user_id=user.id, name=user.name)
    return AuthResponse(
        user_id=user.id,
        name=user.name,
        token=token,
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a JWT session."""
    result = await session.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.login_failure", email=body.email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token = _start_session(response, user)
    log.info("auth.login_success", user_id=user.id)
    return AuthResponse(
        user_id=user.id,
        name=user.name,
        token=token,
        message="Login successful",
    )


@router.post("/logout")
async def logout(response: Response):
    """End the browser session."""
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return {"message": "Logged out"}
