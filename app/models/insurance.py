# app/models/insurance.py
import enum
from datetime import date, timedelta

from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    Numeric,
    Enum,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class InsuranceStatus(str, enum.Enum):
    active = "active"
    expiring_soon = "expiring_soon"
    expired = "expired"
    cancelled = "cancelled"


# Únicos valores que se guardan; los demás se derivan al leer
STORED_INSURANCE_STATUSES = (InsuranceStatus.active, InsuranceStatus.cancelled)


class CoverageType(str, enum.Enum):
    motor_transmission = "motor_transmission"
    full = "full"
    basic = "basic"


class Insurance(TimestampMixin, Base):
    __tablename__ = "insurance"

    id = Column(String(36), primary_key=True, default=new_id)
    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    contract_id = Column(String(36), ForeignKey("contracts.id", ondelete="SET NULL"), nullable=True, index=True)

    start_date = Column(Date, nullable=False)
    # Siempre start_date + coverage_duration meses; lo calcula el servicio
    expiry_date = Column(Date, nullable=False, index=True)
    coverage_type = Column(
        Enum(
            CoverageType,
            name="enum_coverage_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    coverage_duration = Column(Integer, nullable=False)
    premium = Column(Numeric(12, 2), nullable=False)
    status = Column(
        Enum(
            InsuranceStatus,
            name="enum_insurance_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=InsuranceStatus.active,
    )

    vehicle = relationship("Vehicle", back_populates="insurance")
    client = relationship("Client", back_populates="insurance")
    contract = relationship("Contract", back_populates="insurance")

    def effective_status(self, today: date, expiring_soon_days: int = 30) -> InsuranceStatus:
        if self.status == InsuranceStatus.cancelled:
            return InsuranceStatus.cancelled
        if self.expiry_date < today:
            return InsuranceStatus.expired
        if self.expiry_date <= today + timedelta(days=expiring_soon_days):
            return InsuranceStatus.expiring_soon
        return InsuranceStatus.active
