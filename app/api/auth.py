# app/api/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.models import Profile, ProfileRole
from app.services import auth as auth_service
from app.services.access import CallerContext

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginIn(BaseModel):
    username: str
    password: str


class ProfileCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=8)
    full_name: str | None = None
    role: ProfileRole = ProfileRole.user


class ProfileOut(BaseModel):
    id: str
    username: str
    full_name: str | None
    dealer_id: str
    role: ProfileRole
    active: bool

    class Config:
        from_attributes = True


@router.post("/login", response_model=ProfileOut)
def login(
    request: Request,
    data: LoginIn,
    db: Session = Depends(get_db),
):
    profile = auth_service.authenticate_user(db=db, username=data.username, password=data.password)
    if not profile:
        raise HTTPException(status_code=401, detail="Usuario o contraseña inválidos, o usuario inactivo.")

    # Guardar datos mínimos en sesión
    request.session["user"] = {
        "id": profile.id,
        "username": profile.username,
        "rol": profile.role.value,
        "dealer_id": profile.dealer_id,
    }
    return profile


@router.post("/logout", status_code=204)
def logout(request: Request):
    request.session.pop("user", None)


@router.get("/me", response_model=ProfileOut)
def me(
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return db.get(Profile, caller.profile_id)


@router.post("/profiles", response_model=ProfileOut, status_code=201)
def create_profile(
    data: ProfileCreate,
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return auth_service.create_profile(
        db,
        caller,
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        role=data.role,
    )
