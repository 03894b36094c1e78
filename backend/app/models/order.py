"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class Order(Base):
    """
    Order header

    order_code is UNIQUE: the database rejects a duplicate code even if two
    checkouts draw the same one concurrently.
    """
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    order_code = Column(String(32), nullable=False, unique=True)

    # Estados
    status = Column(String(50), nullable=False, default="new", index=True)
    payment_status = Column(String(50))
    payment_method = Column(String(50))

    # Comprador
    buyer_name = Column(String(100), nullable=False)
    buyer_email = Column(String(255))
    buyer_address = Column(String(255), nullable=False)
    buyer_phone = Column(String(20), nullable=False, index=True)
    buyer_notes = Column(String(255))
    shipping_details = Column(Text)

    # Montos
    price = Column(DECIMAL(14, 2), nullable=False)
    coupon = Column(String(100))
    discounted = Column(DECIMAL(14, 2), default=0)
    tax = Column(DECIMAL(14, 2), default=0)
    shipping_fee = Column(DECIMAL(14, 2), default=0)
    final_price = Column(DECIMAL(14, 2), nullable=False)

    # Notas
    internal_notes = Column(Text)

    shop_id = Column(String(100), ForeignKey("shops.id"), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Relationships
    status_history = relationship("OrderStatusHistory", back_populates="order", cascade="all, delete-orphan")
    order_products = relationship("OrderProduct", back_populates="order", cascade="all, delete-orphan")


class OrderStatusHistory(Base):
    """
    Historial de estados (append-only)
    """
    __tablename__ = "order_status_history"

    id = Column(String(64), primary_key=True)
    order_id = Column(String(64), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(String(50), nullable=False)
    note = Column(Text)
    updated_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="status_history")


class OrderProduct(Base):
    """
    Productos de cada orden, copiados al momento de la compra
    """
    __tablename__ = "order_products"

    id = Column(String(64), primary_key=True)
    order_id = Column(String(64), ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(String(64), nullable=False)

    quantity = Column(Integer, nullable=False)
    listed_price = Column(DECIMAL(14, 2), nullable=False)
    sales_price = Column(DECIMAL(14, 2), nullable=False)

    # Datos del producto al momento de venta
    item_name = Column(String(255))
    item_variant = Column(String(255))
    item_media = Column(Text)

    order = relationship("Order", back_populates="order_products")
