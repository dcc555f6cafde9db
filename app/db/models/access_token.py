# app/db/models/access_token.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base, utcnow


class AccessToken(Base):
    __tablename__ = "oauth_access_tokens"

    # Same value as the "jti" claim of the JWT
    id = Column(String(80), primary_key=True)
    user_id = Column(Integer, ForeignKey("usuarios.idUsuario"), nullable=False, index=True)
    name = Column(String, nullable=True)
    revoked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    # Last activity seen with this token
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    usuario = relationship("Usuario", back_populates="access_tokens")
    refresh_token = relationship(
        "RefreshToken", back_populates="access_token", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def last_activity(self) -> datetime:
        return self.updated_at or self.created_at


class RefreshToken(Base):
    __tablename__ = "oauth_refresh_tokens"

    id = Column(String(80), primary_key=True)
    access_token_id = Column(String(80), ForeignKey("oauth_access_tokens.id"), nullable=False, index=True)
    revoked = Column(Boolean, default=False, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    access_token = relationship("AccessToken", back_populates="refresh_token")
