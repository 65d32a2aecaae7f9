"""Update policy: who may change which fields of whose record.

Guards run in a fixed order and the first failure aborts the whole update;
nothing is written until every guard has passed.

  1. existence      target must exist                     -> UserNotFoundError
  2. cross-account  actor != target needs a privileged role -> PermissionDeniedError
  3. role change    any role change needs a privileged role -> PermissionDeniedError
  4. email          new email must not belong to another record
                                                          -> UserAlreadyExistsError
  5. names          replaced only by non-empty values
  6. persist        one repo.update() call

An actor whose id could not be established is refused at step 2 unless
trust_unresolved_actor is set, in which case the request is treated as a
self-update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from app.core.metrics import USER_MUTATIONS
from app.models.acting_identity import ActingIdentity
from app.models.role import is_privileged
from app.models.user import User, normalize_email
from app.repos.user_repo import DuplicateEmailError, UserRepo
from app.services.users_service import (
    UNRESOLVED_ACTOR_REASON,
    PermissionDeniedError,
    UserAlreadyExistsError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)

CROSS_ACCOUNT_REASON = "Insufficient permissions to update other users"
ROLE_CHANGE_REASON = "Insufficient permissions to change role"


@dataclass(frozen=True, slots=True)
class UserChanges:
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None


def check_cross_account(
    target: User,
    identity: ActingIdentity,
    *,
    trust_unresolved_actor: bool = False,
) -> None:
    if not identity.has_subject:
        if trust_unresolved_actor:
            logger.warning(
                "Update of user=%s allowed without acting identity "
                "(trust_unresolved_actor)  status=%s",
                target.id,
                identity.status,
                extra={"target_id": str(target.id)},
            )
            return
        raise PermissionDeniedError(UNRESOLVED_ACTOR_REASON)

    if identity.is_subject(target.id):
        return
    if is_privileged(identity.role):
        return
    raise PermissionDeniedError(CROSS_ACCOUNT_REASON)


def requested_role(target: User, changes: UserChanges) -> str | None:
    """The role change actually requested, or None when there is none."""
    role = (changes.role or "").strip()
    if not role or role == target.role:
        return None
    return role


def check_role_change(identity: ActingIdentity) -> None:
    if not is_privileged(identity.role):
        raise PermissionDeniedError(ROLE_CHANGE_REASON)


async def check_email_available(repo: UserRepo, target: User, email: str) -> None:
    holder = await repo.get_by_email(email)
    if holder is not None and holder.id != target.id:
        raise UserAlreadyExistsError(email)


async def _evaluate(
    repo: UserRepo,
    target_id: UUID,
    identity: ActingIdentity,
    changes: UserChanges,
    trust_unresolved_actor: bool,
) -> User:
    target = await repo.get_by_id(target_id)
    if target is None:
        raise UserNotFoundError(str(target_id))

    check_cross_account(target, identity, trust_unresolved_actor=trust_unresolved_actor)

    updated = target

    new_role = requested_role(target, changes)
    if new_role is not None:
        check_role_change(identity)
        updated = replace(updated, role=new_role)

    if changes.email:
        email = normalize_email(changes.email)
        if email and email != target.email:
            await check_email_available(repo, target, email)
            updated = replace(updated, email=email)

    if changes.first_name:
        updated = replace(updated, first_name=changes.first_name)
    if changes.last_name:
        updated = replace(updated, last_name=changes.last_name)

    if updated == target:
        return target

    try:
        return await repo.update(updated)
    except DuplicateEmailError:
        # Another request claimed the email after our check.
        raise UserAlreadyExistsError(updated.email) from None
    except KeyError:
        raise UserNotFoundError(str(target_id)) from None


async def apply_update(
    repo: UserRepo,
    target_id: UUID,
    identity: ActingIdentity,
    changes: UserChanges,
    *,
    trust_unresolved_actor: bool = False,
) -> User:
    """Run the guards for ``changes`` against ``target_id`` and persist."""
    log_extra = {"actor_id": identity.subject_id, "target_id": str(target_id)}
    try:
        user = await _evaluate(
            repo, target_id, identity, changes, trust_unresolved_actor
        )
    except UserNotFoundError:
        USER_MUTATIONS.labels(operation="update", outcome="not_found").inc()
        logger.info("Update target not found user=%s", target_id, extra=log_extra)
        raise
    except PermissionDeniedError as e:
        USER_MUTATIONS.labels(operation="update", outcome="forbidden").inc()
        logger.warning(
            "Update refused user=%s actor=%s role=%s: %s",
            target_id,
            identity.subject_id,
            identity.role,
            e,
            extra=log_extra,
        )
        raise
    except UserAlreadyExistsError as e:
        USER_MUTATIONS.labels(operation="update", outcome="conflict").inc()
        logger.warning(
            "Update refused user=%s: email=%s already in use",
            target_id,
            e,
            extra=log_extra,
        )
        raise

    USER_MUTATIONS.labels(operation="update", outcome="ok").inc()
    logger.info("Updated user id=%s by actor=%s", user.id, identity.subject_id, extra=log_extra)
    return user
