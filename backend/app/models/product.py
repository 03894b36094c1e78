"""
Catálogo: productos, secciones y variantes
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    url = Column(String(255), index=True)
    price = Column(DECIMAL(14, 2), nullable=False, default=0)
    status = Column(String(50), default="active", index=True)
    featured = Column(Boolean, default=False)
    pinned_position = Column(Integer)
    additional_media = Column(Text)  # JSON array
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    sections = relationship("ProductSection", back_populates="product", cascade="all, delete-orphan")
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")


class Section(Base):
    __tablename__ = "sections"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    url = Column(String(255))
    display_ordering = Column(Integer, default=0)

    products = relationship("ProductSection", back_populates="section", cascade="all, delete-orphan")


class ProductSection(Base):
    __tablename__ = "product_sections"

    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    section_id = Column(String(64), ForeignKey("sections.id", ondelete="CASCADE"), primary_key=True, index=True)

    product = relationship("Product", back_populates="sections")
    section = relationship("Section", back_populates="products")


class VariantGroup(Base):
    __tablename__ = "variant_groups"

    id = Column(String(64), primary_key=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(100), nullable=False)


class VariantOption(Base):
    __tablename__ = "variant_options"

    id = Column(String(64), primary_key=True)
    group_id = Column(String(64), ForeignKey("variant_groups.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String(100), nullable=False)


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(String(64), primary_key=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    option1_id = Column(String(64), ForeignKey("variant_options.id"))
    option2_id = Column(String(64), ForeignKey("variant_options.id"))
    option3_id = Column(String(64), ForeignKey("variant_options.id"))
    price = Column(DECIMAL(14, 2))
    stock = Column(Integer)

    product = relationship("Product", back_populates="variants")
