"""
Repository Layer - Data Access

This layer handles all tenant database queries and returns domain models.
Repositories abstract away SQL details and cache keys from business logic.
"""
from app.repositories.product_repository import ProductRepository
from app.repositories.section_repository import SectionRepository
from app.repositories.order_repository import OrderRepository
from app.repositories.shop_repository import ShopRepository

__all__ = [
    'ProductRepository',
    'SectionRepository',
    'OrderRepository',
    'ShopRepository',
]
