from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from app.models.user import User, normalize_email


class DuplicateEmailError(ValueError):
    """The store refused a write because the email is already taken."""


class UserStoreError(RuntimeError):
    """The backing store failed (connection, query, commit)."""


class UserRepo(Protocol):
    async def get_by_id(self, user_id: UUID) -> User | None: ...
    async def get_by_email(self, email: str) -> User | None: ...
    async def list_all(self) -> list[User]: ...
    async def add(self, user: User) -> None: ...
    async def update(self, user: User) -> User: ...
    async def update_password_hash(self, user_id: UUID, password_hash: str) -> User: ...
    async def delete(self, user_id: UUID) -> bool: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, User] = {}
        self._by_id: dict[UUID, User] = {}

    async def get_by_id(self, user_id: UUID) -> User | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self._by_email.get(normalize_email(email))

    async def list_all(self) -> list[User]:
        return list(self._by_id.values())

    async def add(self, user: User) -> None:
        # Check-and-insert with no await in between, so it is atomic on the loop.
        if user.email in self._by_email:
            raise DuplicateEmailError("email already exists")
        self._by_email[user.email] = user
        self._by_id[user.id] = user

    async def update(self, user: User) -> User:
        current = self._by_id.get(user.id)
        if current is None:
            raise KeyError("user not found")

        holder = self._by_email.get(user.email)
        if holder is not None and holder.id != user.id:
            raise DuplicateEmailError("email already exists")

        if current.email != user.email:
            del self._by_email[current.email]
        self._by_id[user.id] = user
        self._by_email[user.email] = user
        return user

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> User:
        u = self._by_id.get(user_id)
        if u is None:
            raise KeyError("user not found")

        updated = replace(u, password_hash=password_hash)
        self._by_id[user_id] = updated
        self._by_email[updated.email] = updated
        return updated

    async def delete(self, user_id: UUID) -> bool:
        user = self._by_id.pop(user_id, None)
        if user is None:
            return False
        self._by_email.pop(user.email, None)
        return True

    def clear(self) -> None:
        self._by_email.clear()
        self._by_id.clear()
