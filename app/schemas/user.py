import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from app.db.models.user import Rol

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_correo(value: str) -> str:
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("Debe ser un correo electrónico válido")
    return value


class RegisterRequest(BaseModel):
    nombre: str = Field(min_length=1, max_length=200)
    apellidos: str = Field(min_length=1, max_length=250)
    correo: str = Field(max_length=250)
    password: str
    password_confirmation: str

    @field_validator("correo")
    @classmethod
    def correo_valido(cls, v: str) -> str:
        return _check_correo(v)

    @field_validator("password")
    @classmethod
    def password_min(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("La contraseña debe tener al menos 8 caracteres.")
        return v

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("La confirmación de contraseña no coincide.")
        return v


class LoginRequest(BaseModel):
    correo: str
    password: str = Field(min_length=1)

    @field_validator("correo")
    @classmethod
    def correo_valido(cls, v: str) -> str:
        return _check_correo(v)


class UsuarioDTO(BaseModel):
    idUsuario: int
    nombre: str
    apellidos: str
    correo: str
    rol: Rol

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    usuario: UsuarioDTO


class MessageResponse(BaseModel):
    message: str


class ActivityStatus(BaseModel):
    minutes_remaining: float
    seconds_remaining: int
    last_activity: datetime
    inactivity_timeout: int


class ProfileUpdate(BaseModel):
    nombre: Optional[str] = Field(default=None, min_length=1, max_length=200)
    apellidos: Optional[str] = Field(default=None, min_length=1, max_length=250)
    correo: Optional[str] = Field(default=None, max_length=250)
    password: Optional[str] = None
    password_confirmation: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("correo")
    @classmethod
    def correo_valido(cls, v: Optional[str]) -> Optional[str]:
        return _check_correo(v) if v is not None else v

    @field_validator("password")
    @classmethod
    def password_min(cls, v: Optional[str]) -> Optional[str]:
        if v and len(v) < 8:
            raise ValueError("La contraseña debe tener al menos 8 caracteres.")
        return v

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        if info.data.get("password") and v != info.data["password"]:
            raise ValueError("La confirmación de contraseña no coincide.")
        return v
