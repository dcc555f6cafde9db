from app.db.base import Base
from app.db.models.user import Usuario, Rol, Estado
from app.db.models.access_token import AccessToken, RefreshToken

__all__ = ["Base", "Usuario", "Rol", "Estado", "AccessToken", "RefreshToken"]
