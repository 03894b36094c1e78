"""
Checkout Service
Creates storefront orders as one atomic write

Steps:
1. Validate the payload (no database access on failure)
2. Bootstrap the tenant's shop row if missing
3. Resolve live product prices in one query (unknown ids abort the order)
4. Compute totals (shipping fee is passed through as-is)
5. Generate a unique order code and order id (generate, check, retry)
6. Insert header + first status entry + order lines in one batch

Author: TM3
Date: 2026-10-19
"""
import logging
import secrets
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.database import DatabaseService
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.order import (
    CheckoutRequest,
    CheckoutResult,
    OrderLineItem,
    OrderStatus,
    payment_status_for,
)
from app.repositories.order_repository import OrderRepository
from app.repositories.product_repository import ProductRepository
from app.repositories.shop_repository import ShopRepository

logger = logging.getLogger(__name__)

STATUS_HISTORY_NOTE = "Order created"
SYSTEM_USER = "system"


def generate_order_code(now: Optional[datetime] = None) -> str:
    """Human-readable order code: ORD-YYYYMMDD-NNNN (UTC date, random 4 digits)"""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now.strftime('%Y%m%d')}-{1000 + secrets.randbelow(9000)}"


def generate_order_id() -> str:
    return str(uuid.uuid4())


def format_validation_errors(error: PydanticValidationError) -> List[Dict[str, str]]:
    """Pydantic errors -> [{field, message}] with dotted field paths"""
    return [
        {
            'field': '.'.join(str(part) for part in err['loc']),
            'message': err['msg'],
        }
        for err in error.errors()
    ]


class CheckoutService:
    """
    Service for creating orders from storefront checkouts

    Handles:
    - Payload validation
    - Shop bootstrap
    - Price resolution and totals
    - Order code / id generation
    - Atomic order write
    """

    def __init__(self, db: DatabaseService, max_attempts: Optional[int] = None):
        self.db = db
        self.max_attempts = max_attempts or settings.ORDER_ID_MAX_ATTEMPTS
        self.shops = ShopRepository(db)
        self.products = ProductRepository(db)
        self.orders = OrderRepository(db)

    @staticmethod
    def validate(payload: Dict[str, Any]) -> CheckoutRequest:
        """
        Validate a raw checkout payload

        Raises:
            ValidationError: With field-level errors
        """
        try:
            return CheckoutRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(errors=format_validation_errors(e)) from e

    async def _generate_unique(
        self,
        label: str,
        generate: Callable[[], str],
        exists: Callable[[str], Awaitable[bool]],
    ) -> str:
        """
        Generate values until one is not already used

        Raises:
            ConflictError: If every attempt collided
        """
        for attempt in range(1, self.max_attempts + 1):
            value = generate()
            if not await exists(value):
                return value
            logger.warning(f"Generated {label} {value} already exists (attempt {attempt}/{self.max_attempts})")

        logger.error(f"Gave up generating a unique {label} after {self.max_attempts} attempts")
        raise ConflictError(f"Could not generate a unique {label}")

    async def resolve_line_items(self, tenant_id: str, request: CheckoutRequest) -> List[OrderLineItem]:
        """
        Price each requested line from the database

        Raises:
            NotFoundError: With the ids that do not exist
        """
        requested_ids = list(dict.fromkeys(line.id for line in request.products))
        products = await self.products.find_prices(tenant_id, requested_ids)

        missing_ids = [product_id for product_id in requested_ids if product_id not in products]
        if missing_ids:
            raise NotFoundError(missing_ids=missing_ids)

        line_items = []
        for line in request.products:
            product = products[line.id]
            line_items.append(OrderLineItem(
                product_id=line.id,
                quantity=line.quantity,
                listed_price=product.price,
                sales_price=product.price,
                item_name=product.title,
                item_variant=line.variant or '',
                item_media=line.image or '',
            ))
        return line_items

    async def create_order(self, tenant_id: str, payload: Dict[str, Any]) -> CheckoutResult:
        """
        Create an order for a tenant

        Args:
            tenant_id: Tenant (shop) id
            payload: Raw checkout payload (see CheckoutRequest)

        Returns:
            CheckoutResult with the new order id and code

        Raises:
            ValidationError: Invalid payload
            NotFoundError: Unknown product ids
            ConflictError: No unique order code/id within the attempt bound
            DatabaseConnectionError: Tenant database unreachable
            QueryError: Query rejected by the tenant database
            TransactionError: Order batch rejected
        """
        request = self.validate(payload)

        await self.shops.ensure_exists(tenant_id)

        line_items = await self.resolve_line_items(tenant_id, request)
        price = sum((item.line_total for item in line_items), Decimal('0'))
        shipping_fee = request.shipping_fee
        final_price = price + shipping_fee

        order_code = await self._generate_unique(
            'order code', generate_order_code, lambda code: self.orders.code_exists(tenant_id, code),
        )
        order_id = await self._generate_unique(
            'order id', generate_order_id, lambda value: self.orders.id_exists(tenant_id, value),
        )

        now = datetime.now(timezone.utc)
        status = OrderStatus.NEW.value
        payment_status = payment_status_for(request.payment_method).value

        order = {
            'id': order_id,
            'order_code': order_code,
            'status': status,
            'payment_status': payment_status,
            'payment_method': request.payment_method.value,
            'created_at': now,
            'internal_notes': '',
            'buyer_name': request.buyer_name,
            'buyer_email': request.buyer_email or '',
            'buyer_address': request.buyer_address,
            'buyer_phone': request.buyer_phone,
            'buyer_notes': request.buyer_notes or '',
            'shipping_details': request.shipping_details or '',
            'price': price,
            'coupon': '',
            'discounted': Decimal('0'),
            'tax': Decimal('0'),
            'shipping_fee': shipping_fee,
            'final_price': final_price,
            'shop_id': tenant_id,
        }
        status_history = {
            'id': str(uuid.uuid4()),
            'order_id': order_id,
            'status': status,
            'note': STATUS_HISTORY_NOTE,
            'updated_by': SYSTEM_USER,
            'created_at': now,
        }
        order_products = [
            {'id': str(uuid.uuid4()), 'order_id': order_id, **item.model_dump()}
            for item in line_items
        ]

        await self.orders.create(tenant_id, order, status_history, order_products)
        self.db.invalidate_order_cache(tenant_id)

        logger.info(
            f"Created order {order_code} ({order_id}) for tenant '{tenant_id}': "
            f"{len(order_products)} lines, final price {final_price}"
        )

        return CheckoutResult(
            order_id=order_id,
            order_code=order_code,
            status=status,
            payment_status=payment_status,
            price=price,
            shipping_fee=shipping_fee,
            final_price=final_price,
        )
