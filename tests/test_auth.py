"""
Tests de autenticación con JWT real: registro, login y acceso con token.
"""

import pytest

from fertistock.models.user import User
from fertistock.utils.authentication import REFRESH, create_token, hash_password


@pytest.fixture
def anonymous_client(make_client):
    return make_client()


@pytest.fixture
def active_user(db):
    user = User(
        name="Encargada",
        email="encargada@example.com",
        passwd=hash_password("secreto123"),
        role="manager",
        active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def login(client, email, password):
    return client.post("/auth/login", data={"username": email, "password": password})


def test_register_creates_inactive_staff(anonymous_client):
    response = anonymous_client.post(
        "/auth/registro",
        json={"name": "Nuevo", "email": "nuevo@example.com", "passwd": "contraseña1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["active"] is False
    assert body["role"] == "staff"
    assert "passwd" not in body


def test_register_duplicated_email_is_400(anonymous_client, active_user):
    response = anonymous_client.post(
        "/auth/registro",
        json={"name": "Otra", "email": active_user.email, "passwd": "contraseña1"},
    )

    assert response.status_code == 400


def test_inactive_user_cannot_login(anonymous_client):
    anonymous_client.post(
        "/auth/registro",
        json={"name": "Nuevo", "email": "nuevo@example.com", "passwd": "contraseña1"},
    )

    response = login(anonymous_client, "nuevo@example.com", "contraseña1")

    assert response.status_code == 403


def test_login_wrong_password_is_401(anonymous_client, active_user):
    assert login(anonymous_client, active_user.email, "incorrecta").status_code == 401


def test_login_unknown_user_is_404(anonymous_client):
    assert login(anonymous_client, "nadie@example.com", "secreto123").status_code == 404


def test_token_gives_access_to_profile_and_ledger(anonymous_client, active_user, seed):
    token = login(anonymous_client, active_user.email, "secreto123").json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    profile = anonymous_client.get("/auth/perfil", headers=headers)
    assert profile.status_code == 200
    assert profile.json()["email"] == active_user.email

    entries = anonymous_client.get("/stockentries/", headers=headers)
    assert entries.status_code == 200


def test_requests_without_token_are_401(anonymous_client, seed):
    assert anonymous_client.get("/stockentries/").status_code == 401
    assert anonymous_client.get("/inventory/").status_code == 401


def test_refresh_without_cookie_is_401(anonymous_client):
    assert anonymous_client.post("/auth/refresh").status_code == 401


def test_users_admin_only(staff_client):
    assert staff_client.get("/usuarios/").status_code == 403


def test_refresh_token_is_not_accepted_as_bearer(anonymous_client, active_user):
    token = create_token(active_user.id, REFRESH)

    response = anonymous_client.get(
        "/auth/perfil", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


def test_admin_creates_and_updates_users(client):
    payload = {"name": "Bodeguero", "passwd": "contraseña1", "role": "staff", "active": True}
    client.post("/usuarios/", json={**payload, "email": "primero@example.com"})
    created = client.post("/usuarios/", json={**payload, "email": "bodega@example.com"})

    assert created.status_code == 201
    assert created.json()["active"] is True
    user_id = created.json()["id"]

    duplicated = client.post("/usuarios/", json={**payload, "email": "bodega@example.com"})
    assert duplicated.status_code == 400

    updated = client.put(f"/usuarios/{user_id}", json={"role": "manager"})
    assert updated.status_code == 200
    assert updated.json()["role"] == "manager"

    managers = client.get("/usuarios/", params={"role": "manager"}).json()
    assert [user["email"] for user in managers["data"]] == ["bodega@example.com"]
