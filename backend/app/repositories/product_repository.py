"""
Product Repository - Data Access Layer for Products

Prebuilt, parameterized product queries for the storefront. Listing queries
are cached per tenant under keys starting with "{tenant_id}:product" so
DatabaseService.invalidate_product_cache reaches all of them.

Author: TM3
Date: 2026-10-19
"""
import asyncio
import json
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.database import DatabaseService
from app.core.exceptions import QueryError
from app.domain.product import Product

# Cache TTLs (seconds)
SECTION_LISTING_TTL = 2 * 60
FILTER_LISTING_TTL = 2 * 60
RELATED_PRODUCTS_TTL = 5 * 60
PRODUCT_DETAIL_TTL = 10 * 60

# Section filter values that mean "every section"
ALL_SECTIONS = ("all", "", "Tất cả")

SORT_ORDERS = {
    'newest': 'p.created_at DESC',
    'price-asc': 'p.price ASC',
    'price-desc': 'p.price DESC',
}
DEFAULT_SORT_ORDER = 'p.featured DESC, p.created_at DESC'


def build_product_query(
    fields: Optional[Sequence[str]] = None,
    sections: Optional[Sequence[str]] = None,
    exclude_product_id: Optional[str] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
    status: str = 'active',
    distinct: bool = False,
    order_by: Optional[str] = None,
) -> Tuple[str, List[Any]]:
    """
    Build a parameterized product SELECT

    Args:
        fields: Product columns to select (all columns when None or contains '*')
        sections: Only products in any of these section ids
        exclude_product_id: Leave this product out
        limit: Maximum rows
        offset: Rows to skip
        status: Product status to match
        distinct: SELECT DISTINCT (needed when joining several sections)
        order_by: ORDER BY expression; with distinct it must use selected columns

    Returns:
        Tuple of (query, params)
    """
    fields = list(fields or ['*'])
    columns = 'p.*' if '*' in fields else ', '.join(f'p.{field}' for field in fields)

    query = f"SELECT {'DISTINCT ' if distinct else ''}{columns} FROM products p"
    conditions = ["p.status = %s"]
    params: List[Any] = [status]

    if sections:
        query += " INNER JOIN product_sections ps ON p.id = ps.product_id"
        conditions.append(f"ps.section_id IN ({', '.join(['%s'] * len(sections))})")
        params.extend(sections)

    if exclude_product_id:
        conditions.append("p.id <> %s")
        params.append(exclude_product_id)

    query += f" WHERE {' AND '.join(conditions)}"

    if order_by:
        query += f" ORDER BY {order_by}"

    if limit:
        query += " LIMIT %s"
        params.append(limit)

    if offset:
        query += " OFFSET %s"
        params.append(offset)

    return query, params


def apply_pinned_positions(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Move pinned products to their 1-based position, pushing others down

    Pinned positions beyond the end of the list land at the end, in
    pin order.
    """
    pinned = [p for p in products if (p.get('pinned_position') or 0) > 0]
    ordered: List[Optional[Dict[str, Any]]] = [p for p in products if (p.get('pinned_position') or 0) <= 0]

    for product in pinned:
        position = product['pinned_position'] - 1
        while len(ordered) < position:
            ordered.append(None)
        ordered.insert(position, product)

    return [p for p in ordered if p is not None]


def _parse_json_field(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    """

    def __init__(self, db: DatabaseService):
        self.db = db

    async def find_by_section(self, tenant_id: str, section_id: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Newest active products of one section"""
        return await self.db.execute(
            tenant_id,
            """
                SELECT p.*
                FROM products p
                INNER JOIN product_sections ps ON p.id = ps.product_id
                WHERE ps.section_id = %s AND p.status = 'active'
                ORDER BY p.created_at DESC
                LIMIT %s
            """,
            [section_id, limit],
            cache=True,
            ttl=SECTION_LISTING_TTL,
            cache_key=f"{tenant_id}:product:section:{section_id}:{limit}",
        )

    async def find_with_details(self, tenant_id: str, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Find product with its sections, variants and variant groups

        The four queries run concurrently.

        Returns:
            Product dict with 'sections', 'variants' and 'variant_groups', or None
        """
        key = f"{tenant_id}:product:{product_id}"

        product, sections, variants, variant_groups = await asyncio.gather(
            self.db.execute(
                tenant_id,
                "SELECT * FROM products WHERE id = %s",
                [product_id],
                cache=True, ttl=PRODUCT_DETAIL_TTL, cache_key=f"{key}:base",
            ),
            self.db.execute(
                tenant_id,
                """
                    SELECT s.*
                    FROM sections s
                    INNER JOIN product_sections ps ON s.id = ps.section_id
                    WHERE ps.product_id = %s
                """,
                [product_id],
                cache=True, ttl=PRODUCT_DETAIL_TTL, cache_key=f"{key}:sections",
            ),
            self.db.execute(
                tenant_id,
                """
                    SELECT v.*,
                        vo1.name AS option1_name,
                        vo2.name AS option2_name,
                        vo3.name AS option3_name
                    FROM product_variants v
                    LEFT JOIN variant_options vo1 ON v.option1_id = vo1.id
                    LEFT JOIN variant_options vo2 ON v.option2_id = vo2.id
                    LEFT JOIN variant_options vo3 ON v.option3_id = vo3.id
                    WHERE v.product_id = %s
                """,
                [product_id],
                cache=True, ttl=PRODUCT_DETAIL_TTL, cache_key=f"{key}:variants",
            ),
            self.db.execute(
                tenant_id,
                """
                    SELECT vg.*,
                        (SELECT json_agg(json_build_object('id', vo.id, 'name', vo.name))
                         FROM variant_options vo WHERE vo.group_id = vg.id) AS options
                    FROM variant_groups vg
                    WHERE vg.product_id = %s
                """,
                [product_id],
                cache=True, ttl=PRODUCT_DETAIL_TTL, cache_key=f"{key}:variant_groups",
            ),
        )

        if not product:
            return None

        return {
            **product[0],
            'sections': sections,
            'variants': variants,
            'variant_groups': [
                {**group, 'options': _parse_json_field(group.get('options')) or []}
                for group in variant_groups
            ],
        }

    async def find_by_path(self, tenant_id: str, path: str) -> Optional[Dict[str, Any]]:
        """Active product published at a storefront path"""
        rows = await self.db.execute(
            tenant_id,
            """
                SELECT p.*
                FROM products p
                WHERE p.url = %s AND p.status = 'active'
                LIMIT 1
            """,
            [path],
            cache=True,
            ttl=PRODUCT_DETAIL_TTL,
            cache_key=f"{tenant_id}:product:path:{path}",
        )
        return rows[0] if rows else None

    async def find_related(
        self,
        tenant_id: str,
        section_ids: Sequence[str],
        product_id: str,
        take: int = 4,
    ) -> List[Dict[str, Any]]:
        """Newest active products sharing a section with product_id (excluding it)"""
        if not section_ids:
            return []

        query, params = build_product_query(
            sections=section_ids,
            exclude_product_id=product_id,
            distinct=True,
            order_by='p.created_at DESC',
            limit=take,
        )
        return await self.db.execute(
            tenant_id,
            query,
            params,
            cache=True,
            ttl=RELATED_PRODUCTS_TTL,
            cache_key=f"{tenant_id}:product:related:{product_id}:{','.join(sorted(section_ids))}:{take}",
        )

    async def filter_products(
        self,
        tenant_id: str,
        skip: int = 0,
        take: int = 20,
        min_price: float = 0,
        max_price: float = 1_000_000_000,
        section: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = 'newest',
    ) -> Dict[str, Any]:
        """
        Storefront product listing with filters, pinned positions and pagination

        Pinned products are placed before paginating, so the full filtered
        list is fetched and sliced here.

        Returns:
            Dict with data, total, page, page_size, total_pages
        """
        conditions = [
            "p.status = 'active'",
            "p.url IS NOT NULL",
            "p.url <> ''",
            "p.price BETWEEN %s AND %s",
        ]
        params: List[Any] = [min_price, max_price]

        if section not in ALL_SECTIONS and section is not None:
            conditions.append("ps.section_id = %s")
            params.append(section)

        if search:
            conditions.append("LOWER(p.title) LIKE %s")
            params.append(f"%{search.lower()}%")

        where_clause = " AND ".join(conditions)
        order_clause = SORT_ORDERS.get(sort, DEFAULT_SORT_ORDER)
        key = f"{tenant_id}:product:filter:{json.dumps(params, default=str)}"

        rows = await self.db.execute(
            tenant_id,
            f"""
                SELECT p.*
                FROM products p
                LEFT JOIN product_sections ps ON ps.product_id = p.id
                WHERE {where_clause}
                GROUP BY p.id
                ORDER BY {order_clause}
            """,
            params,
            cache=True,
            ttl=FILTER_LISTING_TTL,
            cache_key=f"{key}:{sort}",
        )

        count_rows = await self.db.execute(
            tenant_id,
            f"""
                SELECT COUNT(DISTINCT p.id) AS total
                FROM products p
                LEFT JOIN product_sections ps ON ps.product_id = p.id
                WHERE {where_clause}
            """,
            params,
            cache=True,
            ttl=FILTER_LISTING_TTL,
            cache_key=f"{key}:count",
        )
        total = int(count_rows[0]['total']) if count_rows else 0

        products = [
            {**row, 'additional_media': _parse_json_field(row.get('additional_media'))}
            for row in rows
        ]
        products = apply_pinned_positions(products)

        return {
            'data': products[skip:skip + take],
            'total': total,
            'page': skip // take + 1,
            'page_size': take,
            'total_pages': math.ceil(total / take),
        }

    async def find_prices(self, tenant_id: str, product_ids: Sequence[str]) -> Dict[str, Product]:
        """
        Current price and title of the given products, in one query

        Never cached: checkout must price against live data.

        Returns:
            Dict of product id -> Product (unknown ids are absent)
        """
        if not product_ids:
            return {}

        rows = await self.db.execute(
            tenant_id,
            "SELECT id, price, title FROM products WHERE id = ANY(%s)",
            [list(product_ids)],
        )
        try:
            return {str(row['id']): Product(**{**row, 'id': str(row['id'])}) for row in rows}
        except PydanticValidationError as e:
            raise QueryError(detail=f"Invalid product row: {e}") from e
