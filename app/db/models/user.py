import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Rol(str, enum.Enum):
    """Wire values are the legacy '0'/'1' codes; do not renumber."""

    ADMINISTRADOR = "0"
    DOCENTE = "1"

    @property
    def label(self) -> str:
        return "Administrador" if self is Rol.ADMINISTRADOR else "Docente"


class Estado(str, enum.Enum):
    SUSPENDIDO = "0"
    ACTIVO = "1"
    PENDIENTE = "2"

    @property
    def label(self) -> str:
        return {
            Estado.SUSPENDIDO: "Suspendido",
            Estado.ACTIVO: "Activo",
            Estado.PENDIENTE: "Pendiente",
        }[self]


class Usuario(Base):
    __tablename__ = "usuarios"

    idUsuario = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(200), nullable=False)
    apellidos = Column(String(250), nullable=False)
    correo = Column(String(250), unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # hash, never plain
    # values_callable keeps the '0'/'1'/'2' codes in the column instead of member names
    rol = Column(
        Enum(Rol, name="usuario_rol", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Rol.DOCENTE,
    )
    estado = Column(
        Enum(Estado, name="usuario_estado", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=Estado.PENDIENTE,
    )
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    access_tokens = relationship(
        "AccessToken", back_populates="usuario", cascade="all, delete-orphan"
    )

    @property
    def nombre_completo(self) -> str:
        return f"{self.nombre} {self.apellidos}"

    def es_admin(self) -> bool:
        return self.rol == Rol.ADMINISTRADOR

    def es_docente(self) -> bool:
        return self.rol == Rol.DOCENTE

    def is_activo(self) -> bool:
        return self.estado == Estado.ACTIVO
