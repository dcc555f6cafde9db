# app/api/profile.py
from datetime import timedelta

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.core.config import settings
from app.core.errors import ApiError, FieldValidationError
from app.core.security import get_password_hash
from app.crud import user as crud_user
from app.db.base import utcnow
from app.db.models.user import Usuario
from app.schemas.admin import UsuarioOut
from app.schemas.user import ProfileUpdate

router = APIRouter()


@router.get("", response_model=UsuarioOut)
def show_profile(current_user: Usuario = Depends(get_current_user)):
    return current_user


@router.put("")
def update_profile(
    profile_in: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
):
    # Teachers may change their profile once per interval; administrators any time
    if not current_user.es_admin() and current_user.updated_at is not None:
        interval = timedelta(days=settings.PROFILE_UPDATE_INTERVAL_DAYS)
        if utcnow() - current_user.updated_at < interval:
            raise ApiError(
                status.HTTP_403_FORBIDDEN,
                f"Solo puedes actualizar tu perfil una vez cada {settings.PROFILE_UPDATE_INTERVAL_DAYS} días.",
            )

    data = profile_in.model_dump(exclude_unset=True, exclude={"password_confirmation"})

    correo = data.get("correo")
    if correo and correo != current_user.correo:
        existing = crud_user.get_user_by_correo(db, correo)
        if existing and existing.idUsuario != current_user.idUsuario:
            raise FieldValidationError({"correo": ["Este correo ya está registrado."]})

    password = data.pop("password", None)
    if password:
        current_user.password = get_password_hash(password)

    for field, value in data.items():
        if value is not None:
            setattr(current_user, field, value)

    db.commit()
    db.refresh(current_user)
    return {
        "message": "Perfil actualizado correctamente",
        "user": UsuarioOut.model_validate(current_user),
    }
