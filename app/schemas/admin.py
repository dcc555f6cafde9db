# app/schemas/admin.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.db.models.user import Estado, Rol


class UsuarioOut(BaseModel):
    idUsuario: int
    nombre: str
    apellidos: str
    correo: str
    rol: Rol
    estado: Estado
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UsuarioPage(BaseModel):
    data: List[UsuarioOut]
    current_page: int
    last_page: int
    per_page: int
    total: int
