from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import (
    HashingError,
    InvalidHash,
    VerificationError,
    VerifyMismatchError,
)

from app.models.user import User
from app.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

# Argon2 encodes its parameters and a fresh random salt into every hash.
_ph = PasswordHasher()


class PasswordHashingError(RuntimeError):
    pass


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    try:
        return _ph.hash(plain_password)
    except HashingError as e:
        raise PasswordHashingError("password hashing failed") from e


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User | None:
    user = await repo.get_by_email(email)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None

    # Upgrade the stored hash when the hasher's parameters have moved on.
    try:
        if _ph.check_needs_rehash(user.password_hash):
            user = await repo.update_password_hash(user.id, hash_password(password))
            logger.info("Rehashed password for user=%s", user.id)
    except InvalidHash:
        return None

    return user
