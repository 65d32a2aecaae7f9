"""PgUserRepo error mapping, driven by a hand-rolled session stand-in.

No database is needed: the fake session returns canned results or raises
the SQLAlchemy error a real Postgres session would.
"""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.db.tables import UserRow
from app.models.user import User
from app.repos.pg_user_repo import PgUserRepo
from app.repos.user_repo import DuplicateEmailError, UserStoreError


def _integrity_error() -> IntegrityError:
    return IntegrityError("stmt", {}, Exception("uq_users_email"))


def _operational_error() -> OperationalError:
    return OperationalError("stmt", {}, Exception("connection refused"))


class _Result:
    def __init__(self, rowcount: int = 1, row: UserRow | None = None) -> None:
        self.rowcount = rowcount
        self._row = row

    def scalar_one_or_none(self) -> UserRow | None:
        return self._row


class _FakeSession:
    def __init__(
        self,
        *,
        results: list[_Result] | None = None,
        execute_error: Exception | None = None,
        flush_error: Exception | None = None,
    ) -> None:
        self._results = list(results or [])
        self._execute_error = execute_error
        self._flush_error = flush_error
        self.added: list[object] = []
        self.rolled_back = False

    async def execute(self, stmt: object) -> _Result:
        if self._execute_error is not None:
            raise self._execute_error
        return self._results.pop(0)

    def add(self, row: object) -> None:
        self.added.append(row)

    async def flush(self) -> None:
        if self._flush_error is not None:
            raise self._flush_error

    async def rollback(self) -> None:
        self.rolled_back = True


def _repo(session: _FakeSession) -> PgUserRepo:
    return PgUserRepo(session)  # type: ignore[arg-type]


def _user() -> User:
    return User.new(email="pg@x.com", password_hash="h", first_name="P")


def _row(user: User) -> UserRow:
    return UserRow(
        id=user.id,
        email=user.email,
        password_hash=user.password_hash,
        first_name=user.first_name,
        last_name=user.last_name,
        role=user.role,
        profile_img=user.profile_img,
    )


# ---- add ----


def test_add_flushes_row() -> None:
    session = _FakeSession()
    user = _user()
    asyncio.run(_repo(session).add(user))
    assert len(session.added) == 1
    assert session.added[0].email == "pg@x.com"  # type: ignore[attr-defined]


def test_add_unique_violation_is_duplicate_email() -> None:
    session = _FakeSession(flush_error=_integrity_error())
    with pytest.raises(DuplicateEmailError):
        asyncio.run(_repo(session).add(_user()))
    assert session.rolled_back


def test_add_other_db_failure_is_store_error() -> None:
    session = _FakeSession(flush_error=_operational_error())
    with pytest.raises(UserStoreError):
        asyncio.run(_repo(session).add(_user()))


# ---- update ----


def test_update_returns_user() -> None:
    user = _user()
    session = _FakeSession(results=[_Result(rowcount=1)])
    assert asyncio.run(_repo(session).update(user)) == user


def test_update_unique_violation_is_duplicate_email() -> None:
    session = _FakeSession(execute_error=_integrity_error())
    with pytest.raises(DuplicateEmailError):
        asyncio.run(_repo(session).update(_user()))


def test_update_missing_row_is_key_error() -> None:
    session = _FakeSession(results=[_Result(rowcount=0)])
    with pytest.raises(KeyError):
        asyncio.run(_repo(session).update(_user()))


def test_update_other_db_failure_is_store_error() -> None:
    session = _FakeSession(execute_error=_operational_error())
    with pytest.raises(UserStoreError):
        asyncio.run(_repo(session).update(_user()))


# ---- update_password_hash ----


def test_update_password_hash_rereads_user() -> None:
    user = _user()
    session = _FakeSession(results=[_Result(rowcount=1), _Result(row=_row(user))])
    assert asyncio.run(_repo(session).update_password_hash(user.id, "h")) == user


def test_update_password_hash_missing_row_is_key_error() -> None:
    session = _FakeSession(results=[_Result(rowcount=0)])
    with pytest.raises(KeyError):
        asyncio.run(_repo(session).update_password_hash(uuid4(), "h"))


def test_update_password_hash_row_gone_before_reread_is_key_error() -> None:
    session = _FakeSession(results=[_Result(rowcount=1), _Result(row=None)])
    with pytest.raises(KeyError):
        asyncio.run(_repo(session).update_password_hash(uuid4(), "h"))


# ---- delete / lookups ----


def test_delete_reports_whether_a_row_went() -> None:
    session = _FakeSession(results=[_Result(rowcount=1), _Result(rowcount=0)])
    repo = _repo(session)
    assert asyncio.run(repo.delete(uuid4())) is True
    assert asyncio.run(repo.delete(uuid4())) is False


def test_delete_db_failure_is_store_error() -> None:
    session = _FakeSession(execute_error=_operational_error())
    with pytest.raises(UserStoreError):
        asyncio.run(_repo(session).delete(uuid4()))


def test_get_by_id_maps_row_to_user() -> None:
    user = _user()
    session = _FakeSession(results=[_Result(row=_row(user)), _Result(row=None)])
    repo = _repo(session)
    assert asyncio.run(repo.get_by_id(user.id)) == user
    assert asyncio.run(repo.get_by_id(uuid4())) is None


def test_get_by_email_db_failure_is_store_error() -> None:
    session = _FakeSession(execute_error=_operational_error())
    with pytest.raises(UserStoreError):
        asyncio.run(_repo(session).get_by_email("pg@x.com"))
