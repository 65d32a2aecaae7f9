"""Demo: register → login → update → delete, using FastAPI TestClient.

Run with:
    python scripts/demo_login_flow.py
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app

ADMIN_EMAIL = "demo-admin@example.com"
USER_EMAIL = "demo-user@example.com"
PASSWORD = "demo-pass"


def main() -> None:
    client = TestClient(app)

    # ── Step 1: POST /create (an admin, then a plain user) ──────────
    r = client.post(
        "/create",
        json={"email": ADMIN_EMAIL, "password": PASSWORD, "role": "admin"},
    )
    admin = r.json()["user"]
    print(f"1. POST /create (admin)     → {r.status_code}  id={admin['id']}")

    r = client.post(
        "/register",
        json={"email": USER_EMAIL, "password": PASSWORD, "firstName": "Demo"},
    )
    user = r.json()["user"]
    print(f"   POST /register (user)    → {r.status_code}  id={user['id']}")

    # ── Step 2: POST /login ─────────────────────────────────────────
    r = client.post("/login", json={"email": USER_EMAIL, "password": PASSWORD})
    user_token = r.json()["accessToken"]
    print(f"2. POST /login (user)       → {r.status_code}")

    r = client.post("/login", json={"email": ADMIN_EMAIL, "password": PASSWORD})
    admin_token = r.json()["accessToken"]

    # ── Step 3: PATCH /update, plain user tries to promote itself ──
    r = client.patch(
        "/update",
        json={"userId": user["id"], "newRole": "admin"},
        headers={"Authorization": f"Bearer {user_token}"},
    )
    print(f"3. PATCH /update (self-promote) → {r.status_code}  {r.json()['detail']}")

    # ── Step 4: PATCH /update, admin promotes the user ─────────────
    r = client.patch(
        "/update",
        json={"targetUserId": user["id"], "newRole": "editor"},
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    print(f"4. PATCH /update (admin)    → {r.status_code}  role={r.json()['user']['role']}")

    # ── Step 5: DELETE /delete, self then other ────────────────────
    r = client.request(
        "DELETE",
        "/delete",
        json={"userId": admin["id"]},
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    print(f"5. DELETE /delete (self)    → {r.status_code}  {r.json()['detail']}")

    r = client.request(
        "DELETE",
        "/delete",
        json={"userId": user["id"]},
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    print(f"   DELETE /delete (user)    → {r.status_code}  {r.json()['message']}")

    # ── Step 6: GET /users ──────────────────────────────────────────
    r = client.get("/users", headers={"Authorization": f"Bearer {admin_token}"})
    print(f"6. GET  /users              → {r.status_code}  {[u['email'] for u in r.json()]}")


if __name__ == "__main__":
    main()
