# app/services/auth.py
import logging

from sqlalchemy.orm import Session

from app.core import errors
from app.core.security import verify_password, hash_password, password_needs_rehash
from app.models import Profile, ProfileRole
from app.services.access import CallerContext, require_admin
from app.services.persistence import commit_or_raise
from app.services.validation import clean_text, require_text, to_enum

logger = logging.getLogger(__name__)


def authenticate_user(
    db: Session,
    username: str,
    password: str,
) -> Profile | None:
    """
    Busca un perfil por username y verifica la contraseña.
    Retorna el Profile si es válido y está activo; de lo contrario, None.
    """
    profile: Profile | None = (
        db.query(Profile)
        .filter(Profile.username == (username or "").strip())
        .first()
    )

    if profile is None or not profile.active:
        return None

    if not verify_password(password, profile.password_hash):
        logger.warning(f"Login fallido para {profile.username}")
        return None

    if password_needs_rehash(profile.password_hash):
        profile.password_hash = hash_password(password)
        commit_or_raise(db)

    return profile


def caller_for_profile(profile: Profile) -> CallerContext:
    return CallerContext(
        dealer_id=profile.dealer_id,
        role=ProfileRole(profile.role),
        profile_id=profile.id,
    )


def create_profile(
    db: Session,
    caller: CallerContext,
    *,
    username: str,
    password: str,
    full_name: str | None = None,
    role: ProfileRole | str = ProfileRole.user,
) -> Profile:
    """Alta de un usuario adicional dentro del dealer del administrador."""
    require_admin(caller, "crear usuarios")
    username = require_text(username, "usuario", min_length=3)
    if db.query(Profile).filter(Profile.username == username).first():
        raise errors.UniquenessConflict("El nombre de usuario ya está en uso.")
    try:
        password_hash = hash_password(password)
    except ValueError as exc:
        raise errors.ValidationError(str(exc)) from exc

    profile = Profile(
        username=username,
        password_hash=password_hash,
        full_name=clean_text(full_name),
        dealer_id=caller.dealer_id,
        role=to_enum(ProfileRole, role, "rol") or ProfileRole.user,
        active=True,
    )
    db.add(profile)
    commit_or_raise(db)
    db.refresh(profile)
    logger.info(f"Perfil {profile.username} ({profile.role.value}) creado en dealer {caller.dealer_id}")
    return profile
