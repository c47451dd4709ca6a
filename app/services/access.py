# app/services/access.py
"""
Puerta de acceso multi-tenant.

Toda lectura pasa por ``scoped_query`` (filtra por el dealer del caller) y toda
escritura valida sus referencias con ``ensure_reference`` antes de persistir.
Una fila de otro dealer se ve como inexistente al leer, y como
``TenantMismatch`` cuando se intenta referenciar al escribir.
"""
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Query, Session

from app.core import errors
from app.models import ProfileRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallerContext:
    dealer_id: str
    role: ProfileRole = ProfileRole.user
    profile_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.admin


def scoped_query(db: Session, model, caller: CallerContext) -> Query:
    return db.query(model).filter(model.dealer_id == caller.dealer_id)


def get_scoped(
    db: Session,
    model,
    entity_id: str,
    caller: CallerContext,
    *,
    label: str,
    for_update: bool = False,
):
    """Devuelve la fila del dealer del caller o lanza NotFound."""
    query = scoped_query(db, model, caller).filter(model.id == entity_id)
    if for_update:
        query = query.with_for_update()
    obj = query.first()
    if obj is None:
        raise errors.NotFound(f"{label.capitalize()} no encontrado.")
    return obj


def ensure_reference(
    db: Session,
    model,
    entity_id: str,
    caller: CallerContext,
    *,
    label: str,
    for_update: bool = False,
):
    """
    Carga una fila referenciada por una escritura.
    NotFound si no existe; TenantMismatch si pertenece a otro dealer.
    """
    query = db.query(model).filter(model.id == entity_id)
    if for_update:
        query = query.with_for_update()
    obj = query.first()
    if obj is None:
        raise errors.NotFound(f"{label.capitalize()} no encontrado.")
    if obj.dealer_id != caller.dealer_id:
        logger.warning(
            f"Referencia cruzada rechazada: {label} {entity_id} (dealer {obj.dealer_id}) "
            f"desde dealer {caller.dealer_id}"
        )
        raise errors.TenantMismatch(f"El {label} no pertenece a su concesionario.")
    return obj


def ensure_payload_dealer(caller: CallerContext, dealer_id: str | None) -> None:
    """Nunca se confía en un dealer_id enviado por el cliente que no coincida con la sesión."""
    if dealer_id is not None and dealer_id != caller.dealer_id:
        logger.warning(f"dealer_id {dealer_id} en payload no coincide con la sesión ({caller.dealer_id})")
        raise errors.TenantMismatch("El dealer indicado no coincide con el de la sesión.")


def require_admin(caller: CallerContext, action: str) -> None:
    if not caller.is_admin:
        logger.warning(f"Perfil {caller.profile_id} sin rol admin intentó: {action}")
        raise errors.Forbidden(f"No autorizado: solo los administradores pueden {action}.")
