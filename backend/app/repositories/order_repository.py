"""
Order Repository - Data Access Layer for Orders

Handles order identifier checks, the atomic order creation batch and
customer order lookup.

Author: TM3
Date: 2026-10-19
"""
from typing import Any, Dict, List, Optional, Sequence

from app.core.database import DatabaseService, Statement
from app.domain.order import CLOSED_ORDER_STATUSES, Order, OrderProduct

ORDER_LOOKUP_TTL = 60

ORDER_COLUMNS = (
    'id', 'order_code', 'status', 'payment_status', 'payment_method', 'created_at',
    'internal_notes', 'buyer_name', 'buyer_email', 'buyer_address', 'buyer_phone',
    'buyer_notes', 'shipping_details', 'price', 'coupon', 'discounted', 'tax',
    'shipping_fee', 'final_price', 'shop_id',
)
STATUS_HISTORY_COLUMNS = ('id', 'order_id', 'status', 'note', 'updated_by', 'created_at')
ORDER_PRODUCT_COLUMNS = (
    'id', 'order_id', 'product_id', 'quantity', 'listed_price', 'sales_price',
    'item_name', 'item_variant', 'item_media',
)


def build_insert(table: str, columns: Sequence[str], row: Dict[str, Any]) -> Statement:
    """INSERT statement for one row; row must provide every column"""
    query = (
        f"INSERT INTO {table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(['%s'] * len(columns))})"
    )
    return query, [row[column] for column in columns]


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    async def id_exists(self, tenant_id: str, order_id: str) -> bool:
        rows = await self.db.execute(tenant_id, "SELECT 1 FROM orders WHERE id = %s", [order_id])
        return len(rows) > 0

    async def code_exists(self, tenant_id: str, order_code: str) -> bool:
        rows = await self.db.execute(tenant_id, "SELECT 1 FROM orders WHERE order_code = %s", [order_code])
        return len(rows) > 0

    @staticmethod
    def build_create_statements(
        order: Dict[str, Any],
        status_history: Dict[str, Any],
        order_products: List[Dict[str, Any]],
    ) -> List[Statement]:
        """
        Statements for one new order: header, first status entry, one row per line

        Args:
            order: Row for orders
            status_history: Row for order_status_history
            order_products: Rows for order_products

        Returns:
            List of (query, params), header first
        """
        statements = [
            build_insert('orders', ORDER_COLUMNS, order),
            build_insert('order_status_history', STATUS_HISTORY_COLUMNS, status_history),
        ]
        statements.extend(
            build_insert('order_products', ORDER_PRODUCT_COLUMNS, line) for line in order_products
        )
        return statements

    async def create(
        self,
        tenant_id: str,
        order: Dict[str, Any],
        status_history: Dict[str, Any],
        order_products: List[Dict[str, Any]],
    ) -> None:
        """
        Write an order and its children as one atomic batch

        Raises:
            TransactionError: If the batch is rejected (nothing is written)
        """
        statements = self.build_create_statements(order, status_history, order_products)
        await self.db.execute_batch(tenant_id, statements)

    async def find_open_by_code_or_phone(
        self,
        tenant_id: str,
        order_code: Optional[str] = None,
        buyer_phone: Optional[str] = None,
    ) -> List[Order]:
        """
        Open (not delivered, not cancelled) orders matching a code or a phone

        Args:
            tenant_id: Tenant (shop) id
            order_code: Order code (ORD-YYYYMMDD-NNNN)
            buyer_phone: Buyer phone number

        Returns:
            Orders, newest first, each with its order_products
        """
        key = f"{tenant_id}:order:lookup:{order_code or ''}:{buyer_phone or ''}"

        order_rows = await self.db.execute(
            tenant_id,
            """
                SELECT *
                FROM orders
                WHERE (order_code = %s OR buyer_phone = %s)
                  AND status <> ALL(%s)
                ORDER BY created_at DESC
            """,
            [order_code, buyer_phone, list(CLOSED_ORDER_STATUSES)],
            cache=True,
            ttl=ORDER_LOOKUP_TTL,
            cache_key=key,
        )

        if not order_rows:
            return []

        # All order lines for these orders in ONE QUERY
        order_ids = [row['id'] for row in order_rows]
        item_rows = await self.db.execute(
            tenant_id,
            """
                SELECT *
                FROM order_products
                WHERE order_id = ANY(%s)
                ORDER BY order_id, id
            """,
            [order_ids],
            cache=True,
            ttl=ORDER_LOOKUP_TTL,
            cache_key=f"{key}:products",
        )

        items_by_order: Dict[Any, List[OrderProduct]] = {}
        for item in item_rows:
            items_by_order.setdefault(item['order_id'], []).append(OrderProduct(**item))

        return [
            Order(**{**row, 'order_products': items_by_order.get(row['id'], [])})
            for row in order_rows
        ]
