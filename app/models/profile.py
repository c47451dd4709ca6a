# app/models/profile.py
import enum

from sqlalchemy import Column, String, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class ProfileRole(str, enum.Enum):
    admin = "admin"
    user = "user"


class Profile(TimestampMixin, Base):
    """Vincula una identidad (usuario de login) con un dealer y un rol."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String(50), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=True)

    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)
    role = Column(
        Enum(ProfileRole, name="user_role"),
        nullable=False,
        default=ProfileRole.user,
    )
    active = Column(Boolean, nullable=False, default=True)

    dealer = relationship("Dealer", back_populates="profiles")
