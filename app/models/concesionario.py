# app/models/concesionario.py
from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class Concesionario(TimestampMixin, Base):
    """Socio de consignación: puede tener vehículos del dealer a su cargo."""

    __tablename__ = "concesionarios"

    id = Column(String(36), primary_key=True, default=new_id)
    # Inmutable tras la creación: un socio no cambia de tenant
    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)

    name = Column(Text, nullable=False, index=True)
    contact_name = Column(Text, nullable=True)
    email = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    dealer = relationship("Dealer", back_populates="concesionarios")
    # Referencia débil: al borrar el socio, vehicles.concesionario_id queda en NULL
    vehicles = relationship(
        "Vehicle",
        back_populates="concesionario",
        passive_deletes=True,
        order_by="Vehicle.brand",
    )
