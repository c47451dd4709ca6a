# app/services/dealer_service.py
import logging

from sqlalchemy.orm import Session

from app.core import errors
from app.core.security import hash_password
from app.models import Dealer, Profile, ProfileRole
from app.services.access import CallerContext
from app.services.persistence import commit_or_raise
from app.services.validation import clean_text, require_text

logger = logging.getLogger(__name__)


def _build_dealer(
    *,
    business_name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
) -> Dealer:
    return Dealer(
        business_name=require_text(business_name, "nombre comercial", min_length=2),
        email=clean_text(email),
        phone=clean_text(phone),
        address=clean_text(address),
    )


def create_dealer(
    db: Session,
    *,
    business_name: str,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
) -> Dealer:
    dealer = _build_dealer(business_name=business_name, email=email, phone=phone, address=address)
    db.add(dealer)
    commit_or_raise(db)
    db.refresh(dealer)
    logger.info(f"Dealer creado: {dealer.id} ({dealer.business_name})")
    return dealer


def onboard_dealer(
    db: Session,
    *,
    business_name: str,
    admin_username: str,
    admin_password: str,
    admin_full_name: str | None = None,
    email: str | None = None,
    phone: str | None = None,
    address: str | None = None,
) -> tuple[Dealer, Profile]:
    """
    Alta de un dealer junto con su primer perfil administrador, en una sola
    transacción: si el usuario ya existe no queda un dealer huérfano.
    """
    username = require_text(admin_username, "usuario", min_length=3)
    if db.query(Profile).filter(Profile.username == username).first():
        raise errors.UniquenessConflict("El nombre de usuario ya está en uso.")
    try:
        password_hash = hash_password(admin_password)
    except ValueError as exc:
        raise errors.ValidationError(str(exc)) from exc

    dealer = _build_dealer(business_name=business_name, email=email, phone=phone, address=address)
    db.add(dealer)
    db.flush()

    profile = Profile(
        username=username,
        password_hash=password_hash,
        full_name=clean_text(admin_full_name),
        dealer_id=dealer.id,
        role=ProfileRole.admin,
        active=True,
    )
    db.add(profile)
    commit_or_raise(db)
    db.refresh(dealer)
    db.refresh(profile)
    logger.info(f"Onboarding completo: dealer {dealer.id}, admin {profile.username}")
    return dealer, profile


def get_dealer(db: Session, caller: CallerContext) -> Dealer:
    # El dealer es su propio tenant: se filtra por id, no por dealer_id
    dealer = db.get(Dealer, caller.dealer_id)
    if dealer is None:
        raise errors.NotFound("Dealer no encontrado.")
    return dealer
