# app/models/contract.py
import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    Numeric,
    Enum,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class ContractStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class FinancingType(str, enum.Enum):
    cash = "cash"
    financing = "financing"


# Un contrato "abierto" reclama el vehículo
OPEN_CONTRACT_STATUSES = (ContractStatus.pending, ContractStatus.active)

_OPEN_CLAIM_WHERE = text("status IN ('pending', 'active')")


class Contract(TimestampMixin, Base):
    __tablename__ = "contracts"
    __table_args__ = (
        # A lo sumo un contrato abierto por vehículo
        Index(
            "uq_contracts_open_vehicle",
            "vehicle_id",
            unique=True,
            sqlite_where=_OPEN_CLAIM_WHERE,
            postgresql_where=_OPEN_CLAIM_WHERE,
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    contract_number = Column(String(50), nullable=False, unique=True, index=True)

    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id", ondelete="RESTRICT"), nullable=False, index=True)

    status = Column(
        Enum(
            ContractStatus,
            name="enum_contract_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ContractStatus.pending,
        index=True,
    )

    price = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    financing_type = Column(
        Enum(
            FinancingType,
            name="enum_financing_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    down_payment = Column(Numeric(12, 2), nullable=True)
    months = Column(Integer, nullable=True)
    monthly_payment = Column(Numeric(12, 2), nullable=True)
    notes = Column(Text, nullable=True)

    client = relationship("Client", back_populates="contracts")
    vehicle = relationship("Vehicle", back_populates="contracts")
    insurance = relationship("Insurance", back_populates="contract", passive_deletes=True)
