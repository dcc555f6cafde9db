# app/core/tokens.py
"""
Bearer token issuing, validation and revocation.

The rest of the app only talks to the ``TokenIssuer`` protocol. The default
implementation signs JWTs with python-jose and keeps one ``AccessToken`` row
per token so a token can be revoked before its ``exp`` and so idle time can
be tracked server-side.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Protocol

from jose import JWTError
from jose.constants import ALGORITHMS
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import create_access_token, decode_access_token
from app.db.base import utcnow
from app.db.models.access_token import AccessToken, RefreshToken
from app.db.models.user import Usuario

logger = logging.getLogger(__name__)


class TokenIssuerUnavailable(RuntimeError):
    """Raised by mint() when the app booted without a working issuer."""


@dataclass
class IssuedToken:
    access_token: str
    refresh_token: str
    token_id: str
    expires_at: datetime
    refresh_expires_at: datetime
    token_type: str = "Bearer"


class TokenIssuer(Protocol):
    def mint(self, db: Session, usuario: Usuario, name: str = "API Token") -> IssuedToken: ...

    def resolve(self, db: Session, token: str) -> Optional[AccessToken]: ...

    def validate(self, db: Session, token: str) -> Optional[Usuario]: ...

    def revoke(self, db: Session, token: str) -> bool: ...

    def revoke_all(self, db: Session, usuario: Usuario) -> int: ...


class JWTTokenIssuer:
    def __init__(
        self,
        secret_key: str,
        algorithm: str,
        access_token_expire_minutes: int,
        refresh_token_expire_days: int,
    ):
        if not secret_key:
            raise ValueError("SECRET_KEY must not be empty")
        if algorithm not in ALGORITHMS.HMAC:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        if access_token_expire_minutes <= 0 or refresh_token_expire_days <= 0:
            raise ValueError("Token lifetimes must be positive")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.access_ttl = timedelta(minutes=access_token_expire_minutes)
        self.refresh_ttl = timedelta(days=refresh_token_expire_days)

    def mint(self, db: Session, usuario: Usuario, name: str = "API Token") -> IssuedToken:
        now = utcnow()
        token_id = secrets.token_hex(40)
        record = AccessToken(
            id=token_id,
            user_id=usuario.idUsuario,
            name=name,
            revoked=False,
            created_at=now,
            updated_at=now,
            expires_at=now + self.access_ttl,
        )
        refresh = RefreshToken(
            id=secrets.token_hex(40),
            revoked=False,
            expires_at=now + self.refresh_ttl,
        )
        record.refresh_token = refresh
        db.add(record)
        db.commit()

        access_token = create_access_token(
            data={"sub": str(usuario.idUsuario), "jti": token_id},
            expires_delta=self.access_ttl,
            secret_key=self.secret_key,
            algorithm=self.algorithm,
        )
        return IssuedToken(
            access_token=access_token,
            refresh_token=refresh.id,
            token_id=token_id,
            expires_at=record.expires_at,
            refresh_expires_at=refresh.expires_at,
        )

    def resolve(self, db: Session, token: str) -> Optional[AccessToken]:
        """Return the live token row for ``token`` or None if it is unusable."""
        try:
            payload = decode_access_token(token, self.secret_key, self.algorithm)
        except JWTError:
            return None

        token_id = payload.get("jti")
        if not token_id:
            return None

        record = db.query(AccessToken).filter(
            AccessToken.id == token_id,
            AccessToken.revoked.is_(False),
        ).first()
        if not record:
            return None
        if record.expires_at <= utcnow():
            return None
        if str(record.user_id) != str(payload.get("sub")):
            return None
        return record

    def validate(self, db: Session, token: str) -> Optional[Usuario]:
        record = self.resolve(db, token)
        if record is None:
            return None
        return record.usuario

    def revoke(self, db: Session, token: str) -> bool:
        record = self.resolve(db, token)
        if record is None:
            return False
        self._revoke_record(record)
        db.commit()
        logger.info("Token revoked: user_id=%s token_id=%s", record.user_id, record.id[:8])
        return True

    def revoke_all(self, db: Session, usuario: Usuario) -> int:
        records = db.query(AccessToken).filter(
            AccessToken.user_id == usuario.idUsuario,
            AccessToken.revoked.is_(False),
        ).all()
        for record in records:
            self._revoke_record(record)
        db.commit()
        if records:
            logger.info("Revoked %d token(s) for user_id=%s", len(records), usuario.idUsuario)
        return len(records)

    @staticmethod
    def _revoke_record(record: AccessToken) -> None:
        record.revoked = True
        if record.refresh_token is not None:
            record.refresh_token.revoked = True


class NullTokenIssuer:
    """Issuer used when the real one failed to start: nobody can authenticate."""

    def mint(self, db: Session, usuario: Usuario, name: str = "API Token") -> IssuedToken:
        raise TokenIssuerUnavailable("Token issuer is not available")

    def resolve(self, db: Session, token: str) -> Optional[AccessToken]:
        return None

    def validate(self, db: Session, token: str) -> Optional[Usuario]:
        return None

    def revoke(self, db: Session, token: str) -> bool:
        return False

    def revoke_all(self, db: Session, usuario: Usuario) -> int:
        return 0


def build_token_issuer() -> TokenIssuer:
    try:
        return JWTTokenIssuer(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            access_token_expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
            refresh_token_expire_days=settings.REFRESH_TOKEN_EXPIRE_DAYS,
        )
    except Exception:
        logger.exception("Token issuer failed to initialize; running in unauthenticated-only mode")
        return NullTokenIssuer()


token_issuer: TokenIssuer = build_token_issuer()
