"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import UserRow
from app.models.user import User, normalize_email
from app.repos.user_repo import DuplicateEmailError, UserStoreError


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy.

    The unique index on users.email is the authoritative duplicate guard;
    IntegrityError from a flush is reported as DuplicateEmailError.  Any
    other SQLAlchemy failure becomes UserStoreError.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: UUID) -> User | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise UserStoreError("user lookup by id failed") from e
        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(UserRow).where(UserRow.email == normalize_email(email))
        try:
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise UserStoreError("user lookup by email failed") from e
        if row is None:
            return None
        return _row_to_user(row)

    async def list_all(self) -> list[User]:
        stmt = select(UserRow).order_by(UserRow.email)
        try:
            rows = (await self._session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise UserStoreError("user listing failed") from e
        return [_row_to_user(r) for r in rows]

    async def add(self, user: User) -> None:
        row = UserRow(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            profile_img=user.profile_img,
        )
        self._session.add(row)
        await self._flush()

    async def update(self, user: User) -> User:
        # id is the key, never a value: the owner id is immutable.
        stmt = (
            update(UserRow)
            .where(UserRow.id == user.id)
            .values(
                email=user.email,
                first_name=user.first_name,
                last_name=user.last_name,
                role=user.role,
            )
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as e:
            raise DuplicateEmailError("email already exists") from e
        except SQLAlchemyError as e:
            raise UserStoreError("user update failed") from e
        if result.rowcount == 0:
            raise KeyError("user not found")
        return user

    async def update_password_hash(self, user_id: UUID, password_hash: str) -> User:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(password_hash=password_hash)
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise UserStoreError("password hash update failed") from e
        if result.rowcount == 0:
            raise KeyError("user not found")
        user = await self.get_by_id(user_id)
        if user is None:
            raise KeyError("user not found")
        return user

    async def delete(self, user_id: UUID) -> bool:
        stmt = delete(UserRow).where(UserRow.id == user_id)
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise UserStoreError("user delete failed") from e
        return result.rowcount > 0

    async def _flush(self) -> None:
        try:
            await self._session.flush()
        except IntegrityError as e:
            await self._session.rollback()
            raise DuplicateEmailError("email already exists") from e
        except SQLAlchemyError as e:
            raise UserStoreError("user insert failed") from e


def _row_to_user(row: UserRow) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        first_name=row.first_name or "",
        last_name=row.last_name or "",
        role=row.role,
        profile_img=row.profile_img or "",
    )
