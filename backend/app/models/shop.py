"""
Tienda (tenant) - one row per tenant database
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from .base import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
