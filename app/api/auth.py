import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.deps import get_bearer_token, get_current_token, get_current_user, get_db, get_token_issuer
from app.core import activity
from app.core.config import settings
from app.core.errors import ApiError, FieldValidationError
from app.core.security import verify_password
from app.core.tokens import TokenIssuer, TokenIssuerUnavailable
from app.crud import user as crud_user
from app.db.models.access_token import AccessToken
from app.db.models.user import Estado, Usuario
from app.schemas.user import (
    ActivityStatus,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UsuarioDTO,
)

router = APIRouter()
logger = logging.getLogger(__name__)

BAD_CREDENTIALS = "Las credenciales proporcionadas son incorrectas."


@router.get("/")
def api_status():
    return {
        "aplicacion": "API del Sistema de Exámenes de Ascenso para Docentes",
        "estado": "Operacional",
    }


@router.post("/register", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: RegisterRequest, db: Session = Depends(get_db)):
    if crud_user.get_user_by_correo(db, user_in.correo):
        raise FieldValidationError({"correo": ["Este correo ya está registrado."]})

    # New accounts are teachers waiting for an administrator's approval
    user = crud_user.create_user(db, user_in)
    logger.info("Registered user_id=%s (pending approval)", user.idUsuario)
    return {"message": "Registro exitoso. Su cuenta está pendiente de aprobación por un administrador."}


@router.post("/login", response_model=LoginResponse)
def login(
    form: LoginRequest,
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    user = crud_user.retrieve_by_credentials(db, {"email": form.correo, "password": form.password})
    if not user or not verify_password(form.password, user.password):
        raise FieldValidationError({"correo": [BAD_CREDENTIALS]})

    if user.estado != Estado.ACTIVO:
        label = "pendiente de aprobación" if user.estado == Estado.PENDIENTE else "suspendida"
        raise ApiError(status.HTTP_403_FORBIDDEN, f"Su cuenta está {label}.")

    try:
        issued = issuer.mint(db, user)
    except TokenIssuerUnavailable:
        raise HTTPException(status_code=503, detail="El servicio de autenticación no está disponible.")

    logger.info("Login user_id=%s", user.idUsuario)
    return {
        "access_token": issued.access_token,
        "token_type": issued.token_type,
        "usuario": UsuarioDTO.model_validate(user),
    }


@router.post("/logout", response_model=MessageResponse)
def logout(
    token: str = Depends(get_bearer_token),
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    issuer.revoke(db, token)
    # Close every other session of this account as well
    issuer.revoke_all(db, current_user)
    return {"message": "Sesión cerrada exitosamente"}


@router.get("/user", response_model=UsuarioDTO)
def read_current_user(current_user: Usuario = Depends(get_current_user)):
    return current_user


@router.get("/user/activity-status", response_model=ActivityStatus)
def activity_status(record: AccessToken = Depends(get_current_token)):
    remaining = activity.seconds_remaining(record)
    return {
        "minutes_remaining": remaining / 60,
        "seconds_remaining": remaining,
        "last_activity": record.last_activity,
        "inactivity_timeout": settings.INACTIVITY_TIMEOUT_MINUTES,
    }
