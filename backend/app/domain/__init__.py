"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.

Author: TM3
Date: 2026-10-19
"""
from app.domain.product import Product, Section
from app.domain.order import (
    CheckoutRequest,
    CheckoutResult,
    Order,
    OrderLineItem,
    OrderLineRequest,
    OrderProduct,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)

__all__ = [
    'Product',
    'Section',
    'CheckoutRequest',
    'CheckoutResult',
    'Order',
    'OrderLineItem',
    'OrderLineRequest',
    'OrderProduct',
    'OrderStatus',
    'PaymentMethod',
    'PaymentStatus',
]
