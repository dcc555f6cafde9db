from __future__ import annotations

from datetime import timedelta

import pytest

from app.core.security import verify_password
from app.db.base import utcnow
from app.db.models.user import Rol, Usuario
from helpers import API, bearer

pytestmark = pytest.mark.anyio


def _backdate(db, user_id: int, days: int) -> None:
    user = db.get(Usuario, user_id)
    user.updated_at = utcnow() - timedelta(days=days)
    db.commit()


async def test_show_profile(client, make_user, login):
    make_user("ana@example.com")
    token = await login("ana@example.com")

    r = await client.get(f"{API}/profile", headers=bearer(token))
    assert r.status_code == 200
    body = r.json()
    assert body["correo"] == "ana@example.com"
    assert body["estado"] == "1"
    assert "password" not in body


async def test_teacher_update_is_rate_limited(client, make_user, login):
    make_user("ana@example.com")
    token = await login("ana@example.com")

    r = await client.put(f"{API}/profile", json={"nombre": "Anita"}, headers=bearer(token))
    assert r.status_code == 403
    assert "30 días" in r.json()["message"]


async def test_teacher_update_after_interval(client, db, make_user, login):
    user = make_user("ana@example.com")
    _backdate(db, user.idUsuario, 31)
    token = await login("ana@example.com")

    r = await client.put(
        f"{API}/profile",
        json={"nombre": "Anita", "password": "nuevaclave1", "password_confirmation": "nuevaclave1"},
        headers=bearer(token),
    )
    assert r.status_code == 200
    assert r.json()["user"]["nombre"] == "Anita"

    db.expire_all()
    assert verify_password("nuevaclave1", db.get(Usuario, user.idUsuario).password)


async def test_admin_updates_any_time(client, make_user, login):
    make_user("admin@example.com", rol=Rol.ADMINISTRADOR)
    token = await login("admin@example.com")

    r = await client.put(f"{API}/profile", json={"apellidos": "Nuevo"}, headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["user"]["apellidos"] == "Nuevo"


async def test_update_rejects_taken_correo(client, make_user, login):
    make_user("admin@example.com", rol=Rol.ADMINISTRADOR)
    make_user("ana@example.com")
    token = await login("admin@example.com")

    r = await client.put(f"{API}/profile", json={"correo": "ana@example.com"}, headers=bearer(token))
    assert r.status_code == 422
    assert r.json()["errors"]["correo"] == ["Este correo ya está registrado."]


async def test_update_password_needs_confirmation(client, make_user, login):
    make_user("admin@example.com", rol=Rol.ADMINISTRADOR)
    token = await login("admin@example.com")

    r = await client.put(f"{API}/profile", json={"password": "nuevaclave1"}, headers=bearer(token))
    assert r.status_code == 422
    assert "password_confirmation" in r.json()["errors"]
