"""
Section Repository - storefront sections and their product counts
"""
from typing import List

from app.core.database import DatabaseService
from app.domain.product import Section

SECTION_COUNTS_TTL = 5 * 60


class SectionRepository:
    """Repository for Section data access"""

    def __init__(self, db: DatabaseService):
        self.db = db

    async def find_all_with_counts(self, tenant_id: str) -> List[Section]:
        """
        All sections in display order with their active product count

        Cached under "{tenant_id}:section:*" (see invalidate_section_cache).
        """
        rows = await self.db.execute(
            tenant_id,
            """
                SELECT
                    s.id, s.name, s.url, s.display_ordering,
                    COUNT(DISTINCT p.id) AS product_count
                FROM sections s
                LEFT JOIN product_sections ps ON ps.section_id = s.id
                LEFT JOIN products p ON p.id = ps.product_id AND p.status = 'active'
                GROUP BY s.id, s.name, s.url, s.display_ordering
                ORDER BY s.display_ordering ASC
            """,
            cache=True,
            ttl=SECTION_COUNTS_TTL,
            cache_key=f"{tenant_id}:section:with_counts",
        )
        return [Section(**row) for row in rows]
