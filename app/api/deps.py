# app/api/deps.py
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.db.deps import get_db
from app.models import Profile
from app.services.access import CallerContext
from app.services.auth import caller_for_profile


def _get_session_user(request: Request) -> dict | None:
    return request.session.get("user")


def get_caller(
    request: Request,
    db: Session = Depends(get_db),
) -> CallerContext:
    """
    Contexto del caller autenticado. El dealer y el rol salen siempre del
    perfil guardado, nunca del payload del request.
    """
    user = _get_session_user(request)
    if not user or not user.get("id"):
        raise HTTPException(status_code=401, detail="No autenticado.")

    profile = db.get(Profile, user["id"])
    if profile is None or not profile.active:
        request.session.pop("user", None)
        raise HTTPException(status_code=401, detail="Sesión inválida o usuario inactivo.")
    return caller_for_profile(profile)
