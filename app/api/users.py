"""User account endpoints.

POST   /create  create an account (201)
PATCH  /update  update an account, subject to the update policy
DELETE /delete  delete an account (never your own)
GET    /users   list accounts (bearer token required)

Actor identity for /update and /delete comes from currentUserId /
currentUserRole in the body, topped up from the bearer token when present.
"""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from app.api.dependencies import BearerTokenDep, UserRepoDep, require_user
from app.core.config import SETTINGS
from app.core.metrics import USER_MUTATIONS
from app.models.acting_identity import ActingIdentity
from app.models.user import (
    EMAIL_MAX_LENGTH,
    NAME_MAX_LENGTH,
    ROLE_MAX_LENGTH,
    User,
)
from app.repos.user_repo import UserStoreError
from app.services import identity_resolver, users_service
from app.services.auth_service import PasswordHashingError
from app.services.update_policy import UserChanges, apply_update

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


# --- Request / Response schemas -------------------------------------------


class UserOut(BaseModel):
    id: str
    email: str
    firstName: str
    lastName: str
    role: str
    profile_img: str

    @classmethod
    def from_user(cls, user: User) -> UserOut:
        return cls(
            id=str(user.id),
            email=user.email,
            firstName=user.first_name,
            lastName=user.last_name,
            role=user.role,
            profile_img=user.profile_img,
        )


class UserEnvelope(BaseModel):
    message: str
    user: UserOut


class MessageOut(BaseModel):
    message: str


Email = Annotated[str, Field(max_length=EMAIL_MAX_LENGTH)]
Name = Annotated[str, Field(max_length=NAME_MAX_LENGTH)]
Role = Annotated[str, Field(max_length=ROLE_MAX_LENGTH)]


class CreateUserIn(BaseModel):
    email: Email
    password: str
    firstName: Name = ""
    lastName: Name = ""
    role: Role | None = None


class UpdateUserIn(BaseModel):
    userId: str | None = None
    targetUserId: str | None = None
    firstName: Name | None = None
    lastName: Name | None = None
    email: Email | None = None
    newRole: Role | None = None
    currentUserId: str | None = None
    currentUserRole: str | None = None


class DeleteUserIn(BaseModel):
    userId: str | None = None
    currentUserId: str | None = None


def _parse_user_id(raw: str) -> UUID:
    # An id that is not a UUID cannot name a stored record.
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        ) from None


def _internal_error(operation: str, message: str) -> HTTPException:
    USER_MUTATIONS.labels(operation=operation, outcome="error").inc()
    logger.exception("%s failed", operation.capitalize())
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=message,
    )


# --- POST /create ---------------------------------------------------------


@router.post(
    "/create",
    response_model=UserEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(payload: CreateUserIn, repo: UserRepoDep) -> UserEnvelope:
    try:
        user = await users_service.create_user(
            repo,
            email=payload.email,
            password=payload.password,
            first_name=payload.firstName,
            last_name=payload.lastName,
            role=payload.role,
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
    except (UserStoreError, PasswordHashingError):
        raise _internal_error("create", "Failed to create user") from None

    return UserEnvelope(
        message="User created successfully", user=UserOut.from_user(user)
    )


# --- PATCH /update --------------------------------------------------------


@router.patch("/update", response_model=UserEnvelope)
async def update_user(
    payload: UpdateUserIn,
    repo: UserRepoDep,
    token: BearerTokenDep,
) -> UserEnvelope:
    raw_id = payload.targetUserId or payload.userId
    if not raw_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing user id to update",
        )
    target_id = _parse_user_id(raw_id)

    identity = identity_resolver.resolve_acting_identity(
        payload.currentUserId,
        payload.currentUserRole,
        token,
    )
    changes = UserChanges(
        email=payload.email,
        first_name=payload.firstName,
        last_name=payload.lastName,
        role=payload.newRole,
    )

    try:
        user = await apply_update(
            repo,
            target_id,
            identity,
            changes,
            trust_unresolved_actor=SETTINGS.trust_unresolved_actor,
        )
    except users_service.UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        ) from None
    except users_service.PermissionDeniedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from None
    except users_service.UserAlreadyExistsError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use",
        ) from None
    except UserStoreError:
        raise _internal_error("update", "Failed to update user") from None

    return UserEnvelope(
        message="User updated successfully", user=UserOut.from_user(user)
    )


# --- DELETE /delete -------------------------------------------------------


@router.delete("/delete", response_model=MessageOut)
async def delete_user(
    payload: DeleteUserIn,
    repo: UserRepoDep,
    token: BearerTokenDep,
) -> MessageOut:
    if not payload.userId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing user id to delete",
        )
    target_id = _parse_user_id(payload.userId)

    identity = identity_resolver.resolve_acting_identity(
        payload.currentUserId, None, token
    )

    try:
        await users_service.delete_user(
            repo,
            target_id=target_id,
            identity=identity,
            trust_unresolved_actor=SETTINGS.trust_unresolved_actor,
        )
    except users_service.UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        ) from None
    except users_service.SelfDeletionError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account",
        ) from None
    except users_service.PermissionDeniedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e),
        ) from None
    except UserStoreError:
        raise _internal_error("delete", "Failed to delete user") from None

    return MessageOut(message="User deleted successfully")


# --- GET /users -----------------------------------------------------------


@router.get("/users", response_model=list[UserOut])
async def list_users(
    identity: Annotated[ActingIdentity, Depends(require_user)],
    repo: UserRepoDep,
) -> list[UserOut]:
    logger.info("User list requested by user=%s", identity.subject_id)
    try:
        users = await users_service.list_users(repo)
    except UserStoreError:
        logger.exception("User listing failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list users",
        ) from None
    return [UserOut.from_user(u) for u in users]
