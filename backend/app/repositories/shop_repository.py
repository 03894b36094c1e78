"""
Shop Repository - tenant bootstrap
"""
import logging

from app.core.database import DatabaseService

logger = logging.getLogger(__name__)


def default_shop_name(tenant_id: str) -> str:
    return f"Shop {tenant_id.upper()}"


class ShopRepository:
    """Repository for the shops table of a tenant database"""

    def __init__(self, db: DatabaseService):
        self.db = db

    async def exists(self, tenant_id: str) -> bool:
        rows = await self.db.execute(tenant_id, "SELECT 1 FROM shops WHERE id = %s", [tenant_id])
        return len(rows) > 0

    async def ensure_exists(self, tenant_id: str) -> bool:
        """
        Create the tenant's shop row if it is missing

        Two first requests racing here both see no row; the loser's insert
        is dropped by ON CONFLICT instead of failing the checkout.

        Returns:
            True if this call inserted the row
        """
        if await self.exists(tenant_id):
            return False

        logger.info(f"Shop '{tenant_id}' not found, creating it")
        rows = await self.db.execute(
            tenant_id,
            """
                INSERT INTO shops (id, name)
                VALUES (%s, %s)
                ON CONFLICT (id) DO NOTHING
                RETURNING id
            """,
            [tenant_id, default_shop_name(tenant_id)],
        )
        return len(rows) > 0
