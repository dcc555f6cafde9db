# app/api/deps.py
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core import activity, tokens
from app.core.config import settings
from app.core.errors import ApiError
from app.core.permissions import (
    unauthenticated_denial,
    current_user_var,
    validate_role_and_active,
)
from app.db.models.access_token import AccessToken
from app.db.models.user import Rol, Usuario
from app.db.session import SessionLocal

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_token_issuer() -> tokens.TokenIssuer:
    return tokens.token_issuer


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        unauthenticated_denial().raise_for()
    return credentials.credentials


async def get_current_token(
    request: Request,
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    issuer: tokens.TokenIssuer = Depends(get_token_issuer),
) -> AccessToken:
    record = issuer.resolve(db, token)
    if record is None or record.usuario is None:
        unauthenticated_denial().raise_for()

    if activity.is_idle_expired(record):
        issuer.revoke(db, token)
        logger.info(
            "Token revoked for inactivity: user_id=%s idle=%ss",
            record.user_id, activity.seconds_since_activity(record),
        )
        raise ApiError(
            401,
            "Su sesión ha expirado por inactividad. Por favor, inicie sesión nuevamente.",
            headers={"WWW-Authenticate": "Bearer"},
            expired=True,
            inactivity_timeout=settings.INACTIVITY_TIMEOUT_MINUTES,
        )

    if activity.counts_as_activity(request.url.path):
        activity.touch(record)
        db.commit()
    return record


async def get_current_user(record: AccessToken = Depends(get_current_token)):
    user = record.usuario
    # Lets permission checks called without an explicit user see the caller
    current_user_var.set(user)
    try:
        yield user
    finally:
        current_user_var.set(None)


def require_role(role: Rol):
    def checker(current_user: Usuario = Depends(get_current_user)) -> Usuario:
        result = validate_role_and_active(role, current_user)
        if result is not True:
            result.raise_for()
        return current_user
    return checker


require_admin = require_role(Rol.ADMINISTRADOR)
require_teacher = require_role(Rol.DOCENTE)
