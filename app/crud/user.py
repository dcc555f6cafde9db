from typing import Any, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.orm import ColumnProperty, Session

from app.core.security import get_password_hash
from app.db.models.user import Estado, Rol, Usuario

# Keys of a credentials payload that never become WHERE filters
SECRET_KEYS = {"password", "password_confirmation"}


def get_user_by_correo(db: Session, correo: str) -> Optional[Usuario]:
    return db.query(Usuario).filter(Usuario.correo == correo).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[Usuario]:
    return db.query(Usuario).filter(Usuario.idUsuario == user_id).first()


def retrieve_by_credentials(db: Session, credentials: Mapping[str, Any]) -> Optional[Usuario]:
    """Find the account a credentials payload refers to.

    The external "email" key is looked up in the ``correo`` column; the secret
    and its confirmation are skipped. An empty payload, or one carrying only
    the password, matches nothing rather than the first row of the table.
    """
    if not credentials or (len(credentials) == 1 and "password" in credentials):
        return None

    query = db.query(Usuario)
    filtered = False
    for key, value in credentials.items():
        if key == "email":
            query = query.filter(Usuario.correo == value)
            filtered = True
        elif key not in SECRET_KEYS:
            column = getattr(Usuario, key, None)
            if not isinstance(getattr(column, "property", None), ColumnProperty):
                continue
            query = query.filter(column == value)
            filtered = True

    if not filtered:
        return None
    return query.first()


def create_user(db: Session, user_data, rol: Rol = Rol.DOCENTE, estado: Estado = Estado.PENDIENTE) -> Usuario:
    db_user = Usuario(
        nombre=user_data.nombre,
        apellidos=user_data.apellidos,
        correo=user_data.correo,
        password=get_password_hash(user_data.password),
        rol=rol,
        estado=estado,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_estado(db: Session, usuario: Usuario, estado: Estado) -> Usuario:
    usuario.estado = estado
    db.commit()
    db.refresh(usuario)
    return usuario


def list_users(
    db: Session,
    estado: Optional[str] = None,
    rol: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 10,
):
    query = db.query(Usuario)
    if estado and estado != "todos":
        query = query.filter(Usuario.estado == Estado(estado))
    if rol and rol != "todos":
        query = query.filter(Usuario.rol == Rol(rol))
    if search:
        term = f"%{search}%"
        query = query.filter(or_(
            Usuario.nombre.ilike(term),
            Usuario.apellidos.ilike(term),
            Usuario.correo.ilike(term),
            (Usuario.nombre + " " + Usuario.apellidos).ilike(term),
        ))

    total = query.count()
    items = (
        query.order_by(Usuario.created_at.desc(), Usuario.idUsuario.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return items, total
