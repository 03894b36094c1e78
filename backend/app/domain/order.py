"""
Order Domain Models

Checkout payload, created-order result and the order records returned by
order lookup.

Author: TM3
Date: 2026-10-19
"""
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentMethod(str, Enum):
    COD = "COD"
    VIETQR = "VietQR"
    PAYOO = "Payoo"
    FUNDIIN = "Fundiin"


class OrderStatus(str, Enum):
    """Order lifecycle: new -> ... -> delivered | cancelled"""
    NEW = "new"
    CONFIRMED = "confirmed"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


# Orders in these states no longer show up in customer lookups
CLOSED_ORDER_STATUSES = (OrderStatus.CANCELLED.value, OrderStatus.DELIVERED.value)


def payment_status_for(method: PaymentMethod) -> PaymentStatus:
    """Cash on delivery is collected later; every other method is paid upfront"""
    return PaymentStatus.PENDING if method == PaymentMethod.COD else PaymentStatus.PAID


class OrderLineRequest(BaseModel):
    """One requested product line in a checkout payload"""

    id: str = Field(..., min_length=1, description="Product ID")
    quantity: int = Field(..., ge=1, strict=True, description="Quantity ordered (JSON number, not a string)")
    variant: Optional[str] = Field(None, description="Selected variant label")
    image: Optional[str] = Field(None, description="Media shown in the cart")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutRequest(BaseModel):
    """
    Checkout payload submitted by the storefront

    Fields:
        buyer_name: 2-100 chars
        buyer_address: 5-255 chars
        buyer_phone: 8-20 chars
        buyer_notes: up to 255 chars
        payment_method: COD, VietQR, Payoo or Fundiin
        products: at least one line
        shipping_fee: computed by the storefront, passed through as-is
    """

    buyer_name: str = Field(..., min_length=2, max_length=100)
    buyer_email: Optional[str] = Field("", description="Buyer email (not validated)")
    buyer_address: str = Field(..., min_length=5, max_length=255)
    buyer_phone: str = Field(..., min_length=8, max_length=20)
    buyer_notes: Optional[str] = Field(None, max_length=255)
    shipping_details: Optional[str] = Field("", description="Free-form shipping details")
    shipping_fee: Decimal = Field(Decimal('0'), description="Shipping fee")
    payment_method: PaymentMethod
    products: List[OrderLineRequest] = Field(..., min_length=1)

    # Accepts both buyer_name and buyerName style keys
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderLineItem(BaseModel):
    """
    Denormalized snapshot of a purchased product

    Later product edits do not change historical orders.
    """

    product_id: str
    quantity: int = Field(..., ge=1)
    listed_price: Decimal
    sales_price: Decimal
    item_name: Optional[str] = None
    item_variant: str = ""
    item_media: str = ""

    @property
    def line_total(self) -> Decimal:
        return self.sales_price * self.quantity


class CheckoutResult(BaseModel):
    """Result of a successful checkout"""

    success: bool = True
    order_id: str
    order_code: str
    status: str
    payment_status: str
    price: Decimal
    shipping_fee: Decimal
    final_price: Decimal

    def to_dict(self) -> dict:
        data = self.model_dump()
        for field in ['price', 'shipping_fee', 'final_price']:
            data[field] = float(data[field])
        return data


class OrderProduct(BaseModel):
    """Order line as stored in order_products"""

    id: str
    order_id: str
    product_id: str
    quantity: int
    listed_price: Decimal
    sales_price: Decimal
    item_name: Optional[str] = None
    item_variant: Optional[str] = None
    item_media: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    Order header with its line items, as returned by order lookup
    """

    id: str
    order_code: str
    status: str
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    buyer_address: Optional[str] = None
    buyer_phone: Optional[str] = None
    buyer_notes: Optional[str] = None
    shipping_details: Optional[str] = None
    price: Decimal = Decimal('0')
    discounted: Decimal = Decimal('0')
    tax: Decimal = Decimal('0')
    shipping_fee: Decimal = Decimal('0')
    final_price: Decimal = Decimal('0')

    order_products: List[OrderProduct] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.order_products)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float and ISO dates"""
        data = self.model_dump()
        data['total_quantity'] = self.total_quantity
        data['is_paid'] = self.is_paid

        for field in ['price', 'discounted', 'tax', 'shipping_fee', 'final_price']:
            if data.get(field) is not None:
                data[field] = float(data[field])
        if isinstance(data.get('created_at'), datetime):
            data['created_at'] = data['created_at'].isoformat()

        for item in data['order_products']:
            for field in ['listed_price', 'sales_price']:
                item[field] = float(item[field])

        return data
