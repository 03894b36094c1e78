"""
Product Domain Model

Products are owned by each tenant database. Checkout only reads them and
snapshots price/title into order lines.

Author: TM3
Date: 2026-10-19
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal


class Product(BaseModel):
    """
    Product domain model

    Fields:
        id: Product ID
        title: Display name
        price: Current selling price
        url: Storefront path
        status: active / draft / archived
        featured: Featured flag used by the default sort
        pinned_position: 1-based slot forced in listings (None or 0 = not pinned)
    """

    id: str = Field(..., description="Product ID")
    title: Optional[str] = Field(None, description="Product title")
    price: Decimal = Field(Decimal('0'), description="Selling price", ge=0)
    url: Optional[str] = Field(None, description="Storefront path")
    status: Optional[str] = Field(None, description="Product status")
    featured: Optional[bool] = Field(None, description="Featured flag")
    pinned_position: Optional[int] = Field(None, description="Pinned listing position")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True, extra="ignore")


class Section(BaseModel):
    """Storefront section (category) with its active product count"""

    id: str
    name: str
    url: Optional[str] = None
    display_ordering: Optional[int] = None
    product_count: int = 0

    model_config = ConfigDict(from_attributes=True, extra="ignore")
