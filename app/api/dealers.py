# app/api/dealers.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.deps import get_caller
from app.db.deps import get_db
from app.services import dealer_service
from app.services.access import CallerContext

router = APIRouter(prefix="/dealers", tags=["dealers"])


class DealerOut(BaseModel):
    id: str
    business_name: str
    email: str | None
    phone: str | None
    address: str | None

    class Config:
        from_attributes = True


class DealerOnboard(BaseModel):
    business_name: str = Field(..., min_length=2)
    email: str | None = None
    phone: str | None = Field(None, max_length=20)
    address: str | None = None

    admin_username: str = Field(..., min_length=3, max_length=50)
    admin_password: str = Field(..., min_length=8)
    admin_full_name: str | None = None


class OnboardOut(BaseModel):
    dealer: DealerOut
    admin_profile_id: str
    admin_username: str


@router.post("", response_model=OnboardOut, status_code=201)
def onboard_dealer(data: DealerOnboard, db: Session = Depends(get_db)):
    dealer, profile = dealer_service.onboard_dealer(db, **data.model_dump())
    return OnboardOut(
        dealer=DealerOut.model_validate(dealer),
        admin_profile_id=profile.id,
        admin_username=profile.username,
    )


@router.get("/me", response_model=DealerOut)
def get_my_dealer(
    caller: CallerContext = Depends(get_caller),
    db: Session = Depends(get_db),
):
    return dealer_service.get_dealer(db, caller)
