# app/models/dealer.py
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class Dealer(TimestampMixin, Base):
    """Tenant: todas las demás filas pertenecen a exactamente un dealer."""

    __tablename__ = "dealers"

    id = Column(String(36), primary_key=True, default=new_id)
    business_name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    profiles = relationship("Profile", back_populates="dealer", passive_deletes="all")
    concesionarios = relationship("Concesionario", back_populates="dealer", passive_deletes="all")
    clients = relationship("Client", back_populates="dealer", passive_deletes="all")
    vehicles = relationship("Vehicle", back_populates="dealer", passive_deletes="all")
