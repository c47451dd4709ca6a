# app/models/client.py
from sqlalchemy import Column, String, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.db.base import Base, TimestampMixin, new_id


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)
    dealer_id = Column(String(36), ForeignKey("dealers.id", ondelete="RESTRICT"), nullable=False, index=True)

    # Cédula única en todo el sistema, no solo por dealer
    cedula = Column(String(13), nullable=True, unique=True, index=True)
    name = Column(Text, nullable=False, index=True)
    email = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True, index=True)
    address = Column(Text, nullable=False)

    dealer = relationship("Dealer", back_populates="clients")
    contracts = relationship("Contract", back_populates="client", passive_deletes="all")
    insurance = relationship("Insurance", back_populates="client", passive_deletes=True)
