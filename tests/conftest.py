"""
Pytest configuration for the API and client tests.

Each test gets a fresh in-memory SQLite database; the app's ``get_db``
dependency is pointed at it. AnyIO is pinned to asyncio.
"""
from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from httpx import ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.crud import user as crud_user
from app.db import Base
from app.db.models.user import Estado, Rol
from app.main import app
from helpers import API, PASSWORD


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
async def client(session_factory):
    async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_user(db):
    def _make(
        correo: str,
        rol: Rol = Rol.DOCENTE,
        estado: Estado = Estado.ACTIVO,
        nombre: str = "Ana",
        apellidos: str = "Torres",
        password: str = PASSWORD,
    ):
        data = SimpleNamespace(nombre=nombre, apellidos=apellidos, correo=correo, password=password)
        return crud_user.create_user(db, data, rol=rol, estado=estado)

    return _make


@pytest.fixture
def login(client):
    async def _login(correo: str, password: str = PASSWORD) -> str:
        r = await client.post(f"{API}/login", json={"correo": correo, "password": password})
        assert r.status_code == 200, r.text
        return r.json()["access_token"]

    return _login
