from __future__ import annotations

import logging
from uuid import UUID

from app.core.metrics import USER_MUTATIONS
from app.models.acting_identity import ActingIdentity
from app.models.role import DEFAULT_ROLE
from app.models.user import User, normalize_email
from app.repos.user_repo import DuplicateEmailError, UserRepo
from app.services import auth_service

logger = logging.getLogger(__name__)


class UserValidationError(ValueError):
    pass


class UserAlreadyExistsError(Exception):
    pass


class UserNotFoundError(Exception):
    pass


class SelfDeletionError(Exception):
    pass


class PermissionDeniedError(Exception):
    """An authorization guard refused the request; str(e) is the reason."""


UNRESOLVED_ACTOR_REASON = "Unable to establish acting identity"


async def list_users(repo: UserRepo) -> list[User]:
    return await repo.list_all()


async def create_user(
    repo: UserRepo,
    *,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    role: str | None = None,
    profile_img: str,
) -> User:
    email = normalize_email(email)
    if not email:
        USER_MUTATIONS.labels(operation="create", outcome="invalid").inc()
        logger.warning("Rejected blank email")
        raise UserValidationError("email must be non-empty")

    if await repo.get_by_email(email) is not None:
        USER_MUTATIONS.labels(operation="create", outcome="conflict").inc()
        logger.warning("Rejected duplicate email=%s", email)
        raise UserAlreadyExistsError(email)

    try:
        password_hash = auth_service.hash_password(password)
    except ValueError as e:
        USER_MUTATIONS.labels(operation="create", outcome="invalid").inc()
        raise UserValidationError(str(e)) from None

    user = User.new(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        role=role or DEFAULT_ROLE,
        profile_img=profile_img,
    )
    try:
        await repo.add(user)
    except DuplicateEmailError:
        # Lost the race with a concurrent create for the same email.
        USER_MUTATIONS.labels(operation="create", outcome="conflict").inc()
        logger.warning("Rejected duplicate email=%s (store constraint)", email)
        raise UserAlreadyExistsError(email) from None

    USER_MUTATIONS.labels(operation="create", outcome="ok").inc()
    logger.info("Created user id=%s email=%s role=%s", user.id, user.email, user.role)
    return user


async def delete_user(
    repo: UserRepo,
    *,
    target_id: UUID,
    identity: ActingIdentity,
    trust_unresolved_actor: bool = False,
) -> None:
    """Delete ``target_id`` on behalf of ``identity``.

    Self-deletion is refused whatever the actor's role.  When the actor id is
    unknown the request is refused too, unless ``trust_unresolved_actor``.
    """
    if await repo.get_by_id(target_id) is None:
        USER_MUTATIONS.labels(operation="delete", outcome="not_found").inc()
        raise UserNotFoundError(str(target_id))

    if not identity.has_subject:
        if not trust_unresolved_actor:
            USER_MUTATIONS.labels(operation="delete", outcome="forbidden").inc()
            logger.warning(
                "Delete refused: no acting identity  status=%s",
                identity.status,
                extra={"target_id": str(target_id)},
            )
            raise PermissionDeniedError(UNRESOLVED_ACTOR_REASON)
        logger.warning(
            "Delete proceeding without acting identity (trust_unresolved_actor)",
            extra={"target_id": str(target_id)},
        )

    if identity.is_subject(target_id):
        USER_MUTATIONS.labels(operation="delete", outcome="self_delete").inc()
        logger.warning(
            "Self-deletion refused user=%s",
            target_id,
            extra={"actor_id": identity.subject_id, "target_id": str(target_id)},
        )
        raise SelfDeletionError(str(target_id))

    if not await repo.delete(target_id):
        # Removed by someone else between the lookup and the delete.
        USER_MUTATIONS.labels(operation="delete", outcome="not_found").inc()
        raise UserNotFoundError(str(target_id))

    USER_MUTATIONS.labels(operation="delete", outcome="ok").inc()
    logger.info(
        "Deleted user id=%s by actor=%s",
        target_id,
        identity.subject_id,
        extra={"actor_id": identity.subject_id, "target_id": str(target_id)},
    )
