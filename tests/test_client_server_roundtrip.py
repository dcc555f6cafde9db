"""
SessionStore talking to the real app in-process.
"""
from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from app.client.inactivity import InactivityMonitor
from app.client.session_store import SessionPhase, SessionStore
from app.client.storage import MemoryStorage
from app.core.config import settings
from app.crud import user as crud_user
from app.db.models.user import Estado, Rol
from app.main import app
from helpers import PASSWORD

pytestmark = pytest.mark.anyio


@pytest.fixture
async def api_client(session_factory):
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test/api/v1") as c:
        yield c


async def test_register_approve_login_and_restore(api_client, db):
    storage = MemoryStorage()
    store = SessionStore(api_client, storage)
    await store.initialize()

    registered = await store.register({
        "nombre": "Juan",
        "apellidos": "Pérez",
        "correo": "juan@example.com",
        "password": PASSWORD,
        "password_confirmation": PASSWORD,
    })
    assert "pendiente de aprobación" in registered["message"]

    usuario = crud_user.get_user_by_correo(db, "juan@example.com")
    crud_user.set_estado(db, usuario, Estado.ACTIVO)

    await store.login({"correo": "juan@example.com", "password": PASSWORD})
    assert store.phase is SessionPhase.READY_AUTHENTICATED
    assert store.get_state().user.rol is Rol.DOCENTE

    restored = SessionStore(api_client, storage)
    state = await restored.initialize()

    assert state.token == store.get_state().token
    assert state.user == store.get_state().user

    await restored.logout()
    r = await api_client.get("/user", headers={"Authorization": f"Bearer {state.token}"})
    assert r.status_code == 401


async def test_restore_after_server_revocation_is_anonymous(api_client, make_user):
    make_user("ana@example.com")
    storage = MemoryStorage()
    first = SessionStore(api_client, storage)
    await first.login({"correo": "ana@example.com", "password": PASSWORD})
    token = first.get_state().token

    # Revoked from another device; the local record is now stale
    await api_client.post("/logout", headers={"Authorization": f"Bearer {token}"})

    second = SessionStore(api_client, storage)
    state = await second.initialize()

    assert second.phase is SessionPhase.READY_ANONYMOUS
    assert state.token is None


async def test_monitor_reads_the_server_idle_clock(api_client, make_user):
    make_user("ana@example.com")
    store = SessionStore(api_client, MemoryStorage())
    await store.login({"correo": "ana@example.com", "password": PASSWORD})
    monitor = InactivityMonitor(store)

    remaining = await monitor.server_seconds_remaining()

    budget = settings.INACTIVITY_TIMEOUT_MINUTES * 60
    assert budget - 5 <= remaining <= budget
    await monitor.extend_session()
    assert store.get_state().is_authenticated
