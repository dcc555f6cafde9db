# app/api/admin.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_token_issuer, require_admin
from app.core.errors import ApiError
from app.core.tokens import TokenIssuer
from app.crud import user as crud_user
from app.db.models.user import Estado, Usuario
from app.schemas.admin import UsuarioOut, UsuarioPage
from app.schemas.user import MessageResponse

router = APIRouter()
logger = logging.getLogger(__name__)

ESTADO_FILTER = "^(todos|0|1|2)$"
ROL_FILTER = "^(todos|0|1)$"


def _get_usuario_or_404(db: Session, usuario_id: int) -> Usuario:
    usuario = crud_user.get_user_by_id(db, usuario_id)
    if not usuario:
        raise HTTPException(status_code=404, detail="Usuario no encontrado")
    return usuario


def _forbid_admin_target(usuario: Usuario):
    if usuario.es_admin():
        raise ApiError(status.HTTP_403_FORBIDDEN, "No se puede cambiar el estado de un administrador.")


@router.get("/usuarios", response_model=UsuarioPage)
def list_usuarios(
    estado: Optional[str] = Query(None, pattern=ESTADO_FILTER),
    rol: Optional[str] = Query(None, pattern=ROL_FILTER),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(require_admin),
):
    items, total = crud_user.list_users(db, estado=estado, rol=rol, search=search, page=page, per_page=per_page)
    return {
        "data": items,
        "current_page": page,
        "last_page": max(1, (total + per_page - 1) // per_page),
        "per_page": per_page,
        "total": total,
    }


@router.get("/usuarios/{usuario_id}", response_model=UsuarioOut)
def show_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(require_admin),
):
    return _get_usuario_or_404(db, usuario_id)


@router.patch("/usuarios/{usuario_id}/approve", response_model=MessageResponse)
def approve_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(require_admin),
):
    usuario = _get_usuario_or_404(db, usuario_id)
    _forbid_admin_target(usuario)

    crud_user.set_estado(db, usuario, Estado.ACTIVO)
    logger.info("user_id=%s approved by admin_id=%s", usuario.idUsuario, current_user.idUsuario)
    return {"message": "Usuario aprobado exitosamente."}


@router.patch("/usuarios/{usuario_id}/suspend", response_model=MessageResponse)
def suspend_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(require_admin),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    usuario = _get_usuario_or_404(db, usuario_id)
    _forbid_admin_target(usuario)

    crud_user.set_estado(db, usuario, Estado.SUSPENDIDO)
    # A suspended teacher loses any session still open
    issuer.revoke_all(db, usuario)
    logger.info("user_id=%s suspended by admin_id=%s", usuario.idUsuario, current_user.idUsuario)
    return {"message": "Usuario suspendido exitosamente."}


@router.delete("/usuarios/{usuario_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(require_admin),
):
    usuario = _get_usuario_or_404(db, usuario_id)
    if usuario.idUsuario == current_user.idUsuario:
        raise ApiError(status.HTTP_403_FORBIDDEN, "No puedes eliminar tu propia cuenta.")

    db.delete(usuario)
    db.commit()
    logger.info("user_id=%s deleted by admin_id=%s", usuario_id, current_user.idUsuario)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
