from __future__ import annotations

import dataclasses
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.api import users as users_api
from app.models.user import User
from tests.conftest import auth, mint_token, stored


def _delete(client: TestClient, body: dict, token: str | None = None):
    # httpx only takes a JSON body on DELETE through the generic request().
    return client.request("DELETE", "/delete", json=body, headers=auth(token))


def test_delete_other_user(client: TestClient, alice: User, bob: User) -> None:
    resp = _delete(client, {"userId": str(bob.id), "currentUserId": str(alice.id)})
    assert resp.status_code == 200
    assert resp.json() == {"message": "User deleted successfully"}
    assert stored(bob) is None


def test_delete_self_is_400(client: TestClient, admin: User) -> None:
    resp = _delete(client, {"userId": str(admin.id), "currentUserId": str(admin.id)})
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Cannot delete your own account"}
    assert stored(admin) == admin


@pytest.mark.parametrize("spelling", [str.upper, lambda s: s.replace("-", "")])
def test_delete_self_with_other_uuid_spelling_is_400(
    client: TestClient, alice: User, spelling
) -> None:
    resp = _delete(
        client, {"userId": str(alice.id), "currentUserId": spelling(str(alice.id))}
    )
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Cannot delete your own account"}
    assert stored(alice) == alice


def test_delete_self_via_token_is_400(client: TestClient, admin: User) -> None:
    token = mint_token(subject=str(admin.id), role="admin")
    resp = _delete(client, {"userId": str(admin.id)}, token)
    assert resp.status_code == 400


def test_explicit_current_user_wins_over_token(
    client: TestClient, alice: User, bob: User
) -> None:
    token = mint_token(subject=str(bob.id))
    resp = _delete(
        client, {"userId": str(bob.id), "currentUserId": str(alice.id)}, token
    )
    assert resp.status_code == 200


def test_delete_unknown_user_is_404(client: TestClient, alice: User) -> None:
    resp = _delete(client, {"userId": str(uuid4()), "currentUserId": str(alice.id)})
    assert resp.status_code == 404
    assert resp.json() == {"detail": "User not found"}


def test_delete_missing_user_id_is_400(client: TestClient, alice: User) -> None:
    resp = _delete(client, {"currentUserId": str(alice.id)})
    assert resp.status_code == 400


def test_delete_without_actor_fails_closed(client: TestClient, bob: User) -> None:
    resp = _delete(client, {"userId": str(bob.id)})
    assert resp.status_code == 403
    assert stored(bob) == bob


def test_delete_without_actor_when_trusted(
    client: TestClient, bob: User, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(
        users_api,
        "SETTINGS",
        dataclasses.replace(users_api.SETTINGS, trust_unresolved_actor=True),
    )
    resp = _delete(client, {"userId": str(bob.id)})
    assert resp.status_code == 200
    assert stored(bob) is None
