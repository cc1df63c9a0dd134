"""Gestion des comptes par un administrateur."""
from conftest import DEFAULT_PASSWORD, OTHER_USER_EMAIL, login


def _me(client, headers):
    return client.get("/api/auth/me", headers=headers).json()["user"]


def _user_id(client, admin_headers, email):
    users = client.get("/api/auth/users", headers=admin_headers).json()
    return next(u["id"] for u in users if u["email"] == email)


class TestUserAdministration:
    def test_list_requires_admin(self, client, user_headers):
        resp = client.get("/api/auth/users", headers=user_headers)
        assert resp.status_code == 403
        assert resp.json()["error"] == "Accès réservé aux administrateurs."

    def test_list_requires_authentication(self, client):
        assert client.get("/api/auth/users").status_code == 401

    def test_seeded_users(self, client, admin_headers):
        users = client.get("/api/auth/users", headers=admin_headers).json()
        assert len(users) == 3
        assert all("passwordHash" not in u for u in users)
        assert {u["role"] for u in users} == {"admin", "user"}

    def test_create_user_with_default_password(self, client, admin_headers):
        resp = client.post(
            "/api/auth/users",
            json={"email": "Nouveau@2snd.fr", "name": "Nouveau Venu"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        created = resp.json()
        assert created["email"] == "nouveau@2snd.fr"
        assert created["role"] == "user"
        assert created["isActive"] is True
        login(client, "nouveau@2snd.fr", DEFAULT_PASSWORD)

    def test_create_duplicate_email(self, client, admin_headers):
        resp = client.post(
            "/api/auth/users",
            json={"email": OTHER_USER_EMAIL, "name": "Doublon"},
            headers=admin_headers,
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "EMAIL_EXISTS"

    def test_get_unknown_user(self, client, admin_headers):
        resp = client.get("/api/auth/users/user_ghost", headers=admin_headers)
        assert resp.status_code == 404


class TestDeactivation:
    def test_admin_cannot_deactivate_self(self, client, admin_headers):
        me = _me(client, admin_headers)
        resp = client.delete(f"/api/auth/users/{me['id']}", headers=admin_headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "SELF_DEACTIVATION"

    def test_self_deactivation_refused_even_with_other_admins(self, client, admin_headers):
        client.post(
            "/api/auth/users",
            json={"email": "second.admin@2snd.fr", "name": "Second Admin", "role": "admin"},
            headers=admin_headers,
        )
        me = _me(client, admin_headers)
        resp = client.patch(f"/api/auth/users/{me['id']}", json={"isActive": False}, headers=admin_headers)
        assert resp.status_code == 403
        assert _me(client, admin_headers)["isActive"] is True

    def test_deactivated_user_locked_out(self, client, admin_headers, other_user_headers):
        uid = _user_id(client, admin_headers, OTHER_USER_EMAIL)
        resp = client.delete(f"/api/auth/users/{uid}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["isActive"] is False

        # jeton déjà émis refusé, nouvelle connexion refusée
        assert client.get("/api/auth/me", headers=other_user_headers).status_code == 401
        resp = client.post("/api/auth/login", json={"email": OTHER_USER_EMAIL, "password": DEFAULT_PASSWORD})
        assert resp.status_code == 401

        active = client.get("/api/auth/users", params={"activeOnly": True}, headers=admin_headers).json()
        assert OTHER_USER_EMAIL not in {u["email"] for u in active}
        everyone = client.get("/api/auth/users", headers=admin_headers).json()
        assert OTHER_USER_EMAIL in {u["email"] for u in everyone}

    def test_reactivate(self, client, admin_headers):
        uid = _user_id(client, admin_headers, OTHER_USER_EMAIL)
        client.delete(f"/api/auth/users/{uid}", headers=admin_headers)
        resp = client.put(f"/api/auth/users/{uid}/activate", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["isActive"] is True
        login(client, OTHER_USER_EMAIL, DEFAULT_PASSWORD)


class TestRoles:
    def test_promote_user(self, client, admin_headers):
        uid = _user_id(client, admin_headers, OTHER_USER_EMAIL)
        resp = client.put(f"/api/auth/users/{uid}/role", json={"role": "admin"}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["role"] == "admin"

    def test_admin_cannot_change_own_role(self, client, admin_headers):
        me = _me(client, admin_headers)
        resp = client.put(f"/api/auth/users/{me['id']}/role", json={"role": "user"}, headers=admin_headers)
        assert resp.status_code == 403

    def test_invalid_role(self, client, admin_headers):
        uid = _user_id(client, admin_headers, OTHER_USER_EMAIL)
        resp = client.put(f"/api/auth/users/{uid}/role", json={"role": "superuser"}, headers=admin_headers)
        assert resp.status_code == 400
