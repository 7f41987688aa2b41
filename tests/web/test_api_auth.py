"""Tests for health, authentication and user management endpoints."""

from examprep import __version__
from examprep.core import users


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == __version__
        assert "timestamp" in data

    def test_llm_status_when_coach_disabled(self, client):
        response = client.get("/health/llm")

        assert response.status_code == 200
        assert response.json()["enabled"] is False
        assert response.json()["available"] is False


class TestAuth:
    """Registration, login, session lookup and logout."""

    def test_register_and_login(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "Nia@Example.com", "password": "s3cret-pass", "display_name": "Nia"},
        )
        assert response.status_code == 201
        assert response.json()["email"] == "nia@example.com"
        assert response.json()["level"] == 1

        response = client.post(
            "/api/auth/login", json={"email": "nia@example.com", "password": "s3cret-pass"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["display_name"] == "Nia"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["uid"] == data["user"]["uid"]

    def test_register_duplicate_email(self, client, auth):
        user, _ = auth
        response = client.post(
            "/api/auth/register",
            json={"email": user.email, "password": "s3cret-pass", "display_name": "Someone Else"},
        )
        assert response.status_code == 409

    def test_register_invalid_email(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "nope", "password": "s3cret-pass", "display_name": "Nope"},
        )
        assert response.status_code == 400

    def test_register_short_password_rejected_by_schema(self, client):
        response = client.post(
            "/api/auth/register",
            json={"email": "a@example.com", "password": "123", "display_name": "A"},
        )
        assert response.status_code == 422

    def test_login_wrong_password(self, client, auth):
        user, _ = auth
        response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong-pass"})

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_without_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_me_with_bad_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_logout_revokes_token(self, client, auth):
        _, headers = auth

        assert client.post("/api/auth/logout", headers=headers).status_code == 204
        assert client.get("/api/auth/me", headers=headers).status_code == 401


class TestUsers:
    def test_list_requires_admin(self, client, auth):
        _, headers = auth
        assert client.get("/api/users", headers=headers).status_code == 403

    def test_admin_lists_users(self, client, admin_auth, auth):
        _, headers = admin_auth

        response = client.get("/api/users", headers=headers)

        assert response.status_code == 200
        assert response.json()["count"] == 2

    def test_update_me(self, client, auth):
        user, headers = auth

        response = client.patch(
            "/api/users/me",
            headers=headers,
            json={"display_name": "Renamed", "data_saver_mode": True, "study_plan": {"subjects": ["math"]}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["display_name"] == "Renamed"
        assert data["data_saver_mode"] is True
        assert users.get_user(user.uid).study_plan["subjects"] == ["math"]

    def test_activity_and_milestones(self, client, auth):
        user, headers = auth
        users.add_user_activity(user.uid, "exam", "Mock exam", score=14)

        activity = client.get("/api/users/me/activity", headers=headers, params={"limit": 5})
        assert activity.status_code == 200
        assert [a["title"] for a in activity.json()] == ["Mock exam"]

        response = client.get("/api/users/me/milestones", headers=headers)
        assert response.status_code == 200
        assert all(not m["achieved"] for m in response.json() if m["category"] == "simulation")

    def test_my_badges(self, client, auth):
        user, headers = auth
        users.update_user(user.uid, badges=["streak_master"])

        response = client.get("/api/users/me/badges", headers=headers)

        assert response.status_code == 200
        earned = [b["id"] for b in response.json() if b["earned"]]
        assert earned == ["streak_master"]

    def test_admin_grants_premium(self, client, admin_auth, auth):
        _, admin_headers = admin_auth
        user, _ = auth

        response = client.put(
            f"/api/users/{user.uid}/premium",
            headers=admin_headers,
            json={"is_premium": True, "premium_until": "2099-01-01T00:00:00+00:00"},
        )

        assert response.status_code == 200
        assert response.json()["is_premium"] is True

    def test_admin_deletes_user(self, client, admin_auth, auth):
        _, admin_headers = admin_auth
        user, headers = auth

        assert client.delete(f"/api/users/{user.uid}", headers=admin_headers).status_code == 204
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_delete_unknown_user(self, client, admin_auth):
        _, admin_headers = admin_auth
        assert client.delete("/api/users/ghost", headers=admin_headers).status_code == 404

    def test_delete_requires_admin(self, client, make_account):
        target, _ = make_account()
        _, headers = make_account()

        assert client.delete(f"/api/users/{target.uid}", headers=headers).status_code == 403
