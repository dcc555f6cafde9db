"""
Permission validators: pure functions over a Usuario, no database needed.
"""
from __future__ import annotations

import itertools

import pytest

from app.core.permissions import (
    PermissionDenial,
    current_user_var,
    validate_ownership,
    validate_role,
    validate_role_and_active,
    validate_user_active,
)
from app.db.models.user import Estado, Rol, Usuario


def _user(rol: Rol, estado: Estado = Estado.ACTIVO, user_id: int = 7) -> Usuario:
    return Usuario(idUsuario=user_id, nombre="Ana", apellidos="Torres", correo="ana@example.com", rol=rol, estado=estado)


@pytest.mark.parametrize("required,actual,estado", [
    (required, actual, estado)
    for required, actual, estado in itertools.product(Rol, Rol, Estado)
    if required != actual
])
def test_role_mismatch_is_always_insufficient_permissions(required, actual, estado):
    result = validate_role(required, _user(actual, estado))
    assert result is not True
    assert isinstance(result, PermissionDenial)
    assert result.error == "insufficient_permissions"
    assert result.status_code == 403
    assert result.context == {"required_role": required.value, "user_role": actual.value}


def test_role_match_passes():
    assert validate_role(Rol.DOCENTE, _user(Rol.DOCENTE)) is True


def test_missing_user_is_unauthenticated():
    for check in (
        lambda: validate_role(Rol.DOCENTE),
        lambda: validate_user_active(),
        lambda: validate_ownership(1),
        lambda: validate_role_and_active(Rol.DOCENTE),
    ):
        result = check()
        assert result.error == "unauthenticated"
        assert result.status_code == 401


@pytest.mark.parametrize("estado,label", [
    (Estado.PENDIENTE, "pendiente de aprobación"),
    (Estado.SUSPENDIDO, "suspendido"),
])
def test_inactive_teacher_gets_account_inactive_with_label(estado, label):
    result = validate_user_active(_user(Rol.DOCENTE, estado))
    assert result.error == "account_inactive"
    assert result.status_code == 403
    assert result.message.startswith(f"Su cuenta está {label}.")
    assert result.context == {"estado": estado.value}


def test_unknown_status_label_is_inactivo():
    result = validate_user_active(_user(Rol.DOCENTE, "9"))
    assert result.error == "account_inactive"
    assert result.message.startswith("Su cuenta está inactivo.")


@pytest.mark.parametrize("estado", list(Estado))
def test_admin_is_always_active(estado):
    assert validate_user_active(_user(Rol.ADMINISTRADOR, estado)) is True


def test_ownership():
    assert validate_ownership(7, _user(Rol.DOCENTE, user_id=7)) is True
    assert validate_ownership(8, _user(Rol.ADMINISTRADOR, user_id=7)) is True

    result = validate_ownership(8, _user(Rol.DOCENTE, user_id=7))
    assert result.error == "forbidden"
    assert result.status_code == 403


def test_combined_check_short_circuits_on_role():
    # A pending admin-wannabe fails on role first, not on status
    result = validate_role_and_active(Rol.ADMINISTRADOR, _user(Rol.DOCENTE, Estado.PENDIENTE))
    assert result.error == "insufficient_permissions"

    result = validate_role_and_active(Rol.DOCENTE, _user(Rol.DOCENTE, Estado.PENDIENTE))
    assert result.error == "account_inactive"

    assert validate_role_and_active(Rol.DOCENTE, _user(Rol.DOCENTE)) is True


def test_defaults_to_current_caller():
    token = current_user_var.set(_user(Rol.ADMINISTRADOR))
    try:
        assert validate_role(Rol.ADMINISTRADOR) is True
        assert validate_role(Rol.DOCENTE).error == "insufficient_permissions"
    finally:
        current_user_var.reset(token)


def test_denial_is_falsy_and_renders_payload():
    result = validate_role(Rol.ADMINISTRADOR, _user(Rol.DOCENTE))
    assert not result
    response = result.to_response()
    assert response.status_code == 403
    assert b'"error":"insufficient_permissions"' in response.body
