"""
Modelos de base de datos

Schema of every tenant database. Queries are written as raw SQL in the
repositories; these models define the tables (see scripts/create_schema.py).
"""
from .base import Base
from .shop import Shop
from .product import Product, Section, ProductSection, VariantGroup, VariantOption, ProductVariant
from .order import Order, OrderStatusHistory, OrderProduct

__all__ = [
    "Base",
    "Shop",
    "Product",
    "Section",
    "ProductSection",
    "VariantGroup",
    "VariantOption",
    "ProductVariant",
    "Order",
    "OrderStatusHistory",
    "OrderProduct",
]
