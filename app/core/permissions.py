# app/core/permissions.py
"""
Role, account-status and ownership checks.

Every validator returns ``True`` or a ``PermissionDenial``; none of them raise
for an expected denial. The caller decides how to surface it, either by
returning ``denial.to_response()`` from an endpoint or by calling
``denial.raise_for()`` inside a dependency.

When ``user`` is omitted the validators fall back to the caller bound for the
current request by ``app.api.deps.get_current_user``.
"""
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from app.db.models.user import Estado, Rol, Usuario

current_user_var: ContextVar[Optional[Usuario]] = ContextVar("current_user", default=None)

UNAUTHENTICATED = "unauthenticated"
INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
ACCOUNT_INACTIVE = "account_inactive"
FORBIDDEN = "forbidden"

ESTADO_LABELS = {
    Estado.PENDIENTE: "pendiente de aprobación",
    Estado.SUSPENDIDO: "suspendido",
}


class PermissionDenied(HTTPException):
    """HTTPException whose detail is the full denial payload."""

    def __init__(self, denial: "PermissionDenial"):
        super().__init__(status_code=denial.status_code, detail=denial.payload())
        self.denial = denial


@dataclass
class PermissionDenial:
    error: str
    message: str
    status_code: int = 403
    context: Dict[str, Any] = field(default_factory=dict)

    def payload(self) -> Dict[str, Any]:
        return {"message": self.message, "error": self.error, **self.context}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.payload())

    def raise_for(self):
        raise PermissionDenied(self)

    def __bool__(self) -> bool:
        # A denial must never be mistaken for a pass in `if validate_...():`
        return False


Validation = Union[bool, PermissionDenial]


def _resolve(user: Optional[Usuario]) -> Optional[Usuario]:
    return user if user is not None else current_user_var.get()


def unauthenticated_denial() -> PermissionDenial:
    return PermissionDenial(
        error=UNAUTHENTICATED,
        message="Usuario no autenticado",
        status_code=401,
    )


def estado_label(estado) -> str:
    try:
        estado = Estado(estado)
    except ValueError:
        return "inactivo"
    return ESTADO_LABELS.get(estado, "inactivo")


def validate_role(required_role: Rol, user: Optional[Usuario] = None) -> Validation:
    user = _resolve(user)
    if not isinstance(user, Usuario):
        return unauthenticated_denial()

    required_role = Rol(required_role)
    if user.rol != required_role:
        actual = Rol(user.rol)
        return PermissionDenial(
            error=INSUFFICIENT_PERMISSIONS,
            message=(
                f"Acceso denegado. Esta operación requiere permisos de {required_role.label}. "
                f"Su rol actual es: {actual.label}."
            ),
            context={"required_role": required_role.value, "user_role": actual.value},
        )
    return True


def validate_user_active(user: Optional[Usuario] = None) -> Validation:
    user = _resolve(user)
    if not isinstance(user, Usuario):
        return unauthenticated_denial()

    # Administrators always pass, whatever their status
    if user.es_admin():
        return True

    if user.estado != Estado.ACTIVO:
        return PermissionDenial(
            error=ACCOUNT_INACTIVE,
            message=(
                f"Su cuenta está {estado_label(user.estado)}. "
                "Contacte al administrador para más información."
            ),
            context={"estado": getattr(user.estado, "value", user.estado)},
        )
    return True


def validate_ownership(resource_user_id: int, user: Optional[Usuario] = None) -> Validation:
    user = _resolve(user)
    if not isinstance(user, Usuario):
        return unauthenticated_denial()

    if user.es_admin():
        return True

    if user.idUsuario != resource_user_id:
        return PermissionDenial(
            error=FORBIDDEN,
            message="No tienes permiso para acceder a este recurso",
        )
    return True


def validate_role_and_active(required_role: Rol, user: Optional[Usuario] = None) -> Validation:
    result = validate_role(required_role, user)
    if result is not True:
        return result
    return validate_user_active(user)
