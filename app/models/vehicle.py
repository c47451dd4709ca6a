# app/models/vehicle.py
import enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    Numeric,
    Enum,
    ForeignKey,
    JSON,
)
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class VehicleStatus(str, enum.Enum):
    available = "available"
    reserved = "reserved"
    in_process = "in_process"
    sold = "sold"
    maintenance = "maintenance"


class VehicleCondition(str, enum.Enum):
    new = "new"
    used = "used"


class Vehicle(TimestampMixin, Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=new_id)
    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)
    concesionario_id = Column(
        String(36),
        ForeignKey("concesionarios.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    brand = Column(Text, nullable=False)
    model = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    trim = Column(Text, nullable=True)
    vehicle_type = Column(Text, nullable=False)
    color = Column(Text, nullable=False)

    status = Column(
        Enum(
            VehicleStatus,
            name="enum_vehicle_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=VehicleStatus.available,
        index=True,
    )
    condition = Column(
        Enum(
            VehicleCondition,
            name="enum_vehicle_condition",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=VehicleCondition.new,
    )

    # VIN y placa únicos en todo el sistema
    vin = Column(String(17), nullable=False, unique=True, index=True)
    plate = Column(String(10), nullable=True, unique=True, index=True)

    price = Column(Numeric(12, 2), nullable=False)
    has_offer = Column(Boolean, nullable=False, default=False)
    offer_price = Column(Numeric(12, 2), nullable=True)

    mileage = Column(Integer, nullable=True)
    transmission = Column(Text, nullable=False)
    fuel_type = Column(Text, nullable=False)
    engine_size = Column(Text, nullable=False)
    doors = Column(Integer, nullable=False)
    seats = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    entry_date = Column(Date, nullable=True)

    dealer = relationship("Dealer", back_populates="vehicles")
    concesionario = relationship("Concesionario", back_populates="vehicles")
    contracts = relationship("Contract", back_populates="vehicle", passive_deletes="all")
    insurance = relationship("Insurance", back_populates="vehicle", passive_deletes="all")
