"""JSON auth endpoints: /login, /register, /renewToken.

All three return { accessToken, refreshToken, user } so a client can keep
the tokens in memory and send the access token as a Bearer header.
"""

from __future__ import annotations

import logging
from uuid import UUID

import jwt
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from app.api.dependencies import UserRepoDep
from app.api.users import Email, Name, UserOut
from app.core.config import SETTINGS
from app.models.user import User
from app.repos.user_repo import UserStoreError
from app.services import auth_service, token_service, users_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    email: Email
    password: str
    firstName: Name = ""
    lastName: Name = ""


class RenewIn(BaseModel):
    refreshToken: str


class AuthResponse(BaseModel):
    accessToken: str
    refreshToken: str
    user: UserOut


def _issue(user: User) -> AuthResponse:
    return AuthResponse(
        accessToken=token_service.create_access_token(
            sub=str(user.id), role=user.role
        ),
        refreshToken=token_service.create_refresh_token(sub=str(user.id)),
        user=UserOut.from_user(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginIn, repo: UserRepoDep) -> AuthResponse:
    logger.info("Login attempt  email=%s", payload.email)
    try:
        user = await auth_service.authenticate_user(
            repo, payload.email, payload.password
        )
    except UserStoreError:
        logger.exception("Login failed: user store unavailable")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to log in",
        ) from None

    if user is None:
        logger.warning("Login failed  email=%s", payload.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    logger.info("Login succeeded  user_id=%s", user.id)
    return _issue(user)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterIn, repo: UserRepoDep) -> AuthResponse:
    # Self-registration always yields the default role.
    try:
        user = await users_service.create_user(
            repo,
            email=payload.email,
            password=payload.password,
            first_name=payload.firstName,
            last_name=payload.lastName,
            role=None,
            profile_img=SETTINGS.default_profile_img,
        )
    except users_service.UserAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use",
        ) from None
    except users_service.UserValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=str(e),
        ) from None
    except (UserStoreError, auth_service.PasswordHashingError):
        logger.exception("Registration failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register user",
        ) from None

    logger.info("User registered  user_id=%s", user.id)
    return _issue(user)


@router.post("/renewToken", response_model=AuthResponse)
async def renew_token(payload: RenewIn, repo: UserRepoDep) -> AuthResponse:
    """Exchange a refresh token for a new pair.

    The role in the new access token is read from the store, so a role
    change takes effect on the next renewal.
    """
    try:
        claims = token_service.decode_refresh_token(payload.refreshToken)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired refresh token presented")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired",
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid refresh token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        ) from None

    sub = claims["sub"]
    try:
        user = await repo.get_by_id(UUID(sub))
    except ValueError:
        user = None

    if user is None:
        logger.warning("Renewal for unknown user  sub=%s", sub)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    logger.info("Token renewed  user_id=%s", user.id)
    return _issue(user)
