# app/core/security.py
from datetime import datetime, timedelta, timezone
from jose import jwt
from passlib.context import CryptContext
from app.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
    secret_key: str | None = None,
    algorithm: str | None = None,
) -> str:
    """Sign ``data`` with an ``exp`` claim; key and algorithm default to settings."""
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(
        claims,
        secret_key or settings.SECRET_KEY,
        algorithm=algorithm or settings.ALGORITHM,
    )

def decode_access_token(token: str, secret_key: str | None = None, algorithm: str | None = None) -> dict:
    """Return the verified payload; expired or tampered tokens raise jose's JWTError."""
    return jwt.decode(
        token,
        secret_key or settings.SECRET_KEY,
        algorithms=[algorithm or settings.ALGORITHM],
    )
