"""
Tenant database access

Este módulo centraliza el acceso a las bases de datos de cada tienda (tenant):
- TenantConnectionRegistry: one connection pool per tenant, created lazily
- DatabaseService: parameterized queries, query cache, atomic batches

Every tenant has its own PostgreSQL database. Its address is derived from the
tenant id through a URL template (see Settings.TENANT_DATABASE_URL).

Author: TM3
Updated: 2026-10-19
"""
import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from .cache import QueryCache
from .config import settings
from .exceptions import DatabaseConnectionError, QueryError, TransactionError

logger = logging.getLogger(__name__)

TENANT_PLACEHOLDER = "{tenant_id}"

Statement = Tuple[str, Sequence[Any]]


def build_tenant_database_url(tenant_id: str, template: Optional[str] = None) -> str:
    """
    Derive a tenant's database URL from the configured template

    Example:
        build_tenant_database_url("shop1", "postgresql://{tenant_id}-db.example.com/shop")
        -> "postgresql://shop1-db.example.com/shop"
    """
    template = template or settings.get_tenant_database_url()
    return template.replace(TENANT_PLACEHOLDER, tenant_id)


async def open_connection_pool(database_url: str) -> AsyncConnectionPool:
    """
    Open a psycopg connection pool for one tenant database

    Connections return dict rows and run in autocommit mode; atomic
    batches open an explicit transaction (see DatabaseService.execute_batch).
    """
    kwargs: Dict[str, Any] = {"row_factory": dict_row, "autocommit": True}
    if settings.DATABASE_PASSWORD:
        kwargs["password"] = settings.DATABASE_PASSWORD

    pool = AsyncConnectionPool(
        database_url,
        min_size=settings.DB_POOL_MIN_SIZE,
        max_size=settings.DB_POOL_MAX_SIZE,
        kwargs=kwargs,
        open=False,
    )
    try:
        await pool.open(wait=True, timeout=settings.DB_CONNECT_TIMEOUT)
    except Exception:
        await pool.close()
        raise
    return pool


class TenantConnectionRegistry:
    """
    Maps a tenant id to its live database handle

    - A memoized handle is returned immediately
    - Concurrent first requests for the same tenant await one shared creation
    - A failed creation clears its pending marker so the next call retries
    """

    def __init__(
        self,
        connect: Callable[[str], Awaitable[Any]] = open_connection_pool,
        url_template: Optional[str] = None,
    ):
        self._connect = connect
        self._url_template = url_template
        self._connections: Dict[str, Any] = {}
        self._pending: Dict[str, "asyncio.Task[Any]"] = {}

    def database_url(self, tenant_id: str) -> str:
        return build_tenant_database_url(tenant_id, self._url_template)

    async def get_connection(self, tenant_id: str) -> Any:
        """
        Get (or lazily create) the database handle for a tenant

        Raises:
            DatabaseConnectionError: If the tenant database is unreachable
        """
        connection = self._connections.get(tenant_id)
        if connection is not None:
            return connection

        # No await between the lookup and the insert below
        task = self._pending.get(tenant_id)
        if task is None:
            task = asyncio.ensure_future(self._create_connection(tenant_id))
            self._pending[tenant_id] = task

        # One cancelled waiter must not cancel the shared creation
        return await asyncio.shield(task)

    async def _create_connection(self, tenant_id: str) -> Any:
        task = asyncio.current_task()
        database_url = self.database_url(tenant_id)
        logger.info(f"Opening database connection for tenant '{tenant_id}'")

        try:
            connection = await self._connect(database_url)
        except Exception as e:
            self._clear_pending(tenant_id, task)
            logger.error(f"Connection to tenant '{tenant_id}' database failed: {e}")
            raise DatabaseConnectionError(f"Could not connect to database for tenant '{tenant_id}'") from e

        # close_all / close_connection ran while connecting: this handle is orphaned
        if self._pending.get(tenant_id) is not task:
            logger.info(f"Registry closed while connecting to tenant '{tenant_id}', discarding connection")
            await connection.close()
            raise DatabaseConnectionError(f"Connection to tenant '{tenant_id}' was closed while opening")

        del self._pending[tenant_id]
        self._connections[tenant_id] = connection
        return connection

    def _clear_pending(self, tenant_id: str, task: "Optional[asyncio.Task[Any]]") -> None:
        """Drop the pending marker only if it still belongs to task"""
        if self._pending.get(tenant_id) is task:
            del self._pending[tenant_id]

    async def close_connection(self, tenant_id: str) -> None:
        """Close and forget a tenant's handle and any in-flight creation (no-op if absent)"""
        self._pending.pop(tenant_id, None)
        connection = self._connections.pop(tenant_id, None)
        if connection is not None:
            await connection.close()
            logger.info(f"Closed database connection for tenant '{tenant_id}'")

    async def close_all(self) -> None:
        """Close every handle and drop pending creations"""
        connections = list(self._connections.items())
        self._connections.clear()
        self._pending.clear()

        for tenant_id, connection in connections:
            try:
                await connection.close()
            except Exception as e:
                logger.warning(f"Error closing connection for tenant '{tenant_id}': {e}")

    def stats(self) -> Dict[str, Any]:
        return {
            'tenants': sorted(self._connections.keys()),
            'open_connections': len(self._connections),
            'pending_connections': len(self._pending),
        }


class DatabaseService:
    """
    Query execution facade over the tenant registry and the query cache

    Usage:
        db = DatabaseService(TenantConnectionRegistry(), QueryCache())
        rows = await db.execute("shop1", "SELECT * FROM sections", cache=True)
    """

    def __init__(self, registry: TenantConnectionRegistry, cache: QueryCache):
        self.registry = registry
        self.cache = cache

    @staticmethod
    def build_cache_key(tenant_id: str, query: str, params: Optional[Sequence[Any]] = None) -> str:
        """Same tenant + query text + params -> same cache slot"""
        return f"{tenant_id}:{query}:{json.dumps(list(params or []), default=str)}"

    async def get_connection(self, tenant_id: str) -> Any:
        return await self.registry.get_connection(tenant_id)

    async def execute(
        self,
        tenant_id: str,
        query: str,
        params: Optional[Sequence[Any]] = None,
        cache: bool = False,
        ttl: Optional[float] = None,
        cache_key: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Run a parameterized query against a tenant database

        Args:
            tenant_id: Tenant (shop) id
            query: SQL with %s placeholders
            params: Query parameters
            cache: Consult/populate the query cache
            ttl: Cache TTL in seconds (cache default when None)
            cache_key: Explicit cache key (defaults to tenant + query + params)

        Returns:
            List of rows as dicts

        Raises:
            DatabaseConnectionError: If the database is unreachable
            QueryError: If the database rejects the query
        """
        key = cache_key or self.build_cache_key(tenant_id, query, params)

        if cache:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit: {key[:120]}")
                return cached

        pool = await self.get_connection(tenant_id)
        try:
            async with pool.connection() as conn:
                async with conn.cursor() as cursor:
                    await cursor.execute(query, params)
                    rows = await cursor.fetchall() if cursor.description else []
        except psycopg.OperationalError as e:
            logger.error(f"Query failed for tenant '{tenant_id}': {e}")
            raise DatabaseConnectionError(f"Database unavailable for tenant '{tenant_id}'") from e
        except psycopg.Error as e:
            logger.error(f"Query rejected for tenant '{tenant_id}': {e}")
            raise QueryError(detail=str(e)) from e

        if cache:
            self.cache.set(key, rows, ttl)

        return rows

    async def execute_transaction(self, tenant_id: str, operations: Callable[[Any], Awaitable[Any]]) -> Any:
        """
        Hand one tenant connection to operations and return its result

        No retries and no isolation beyond what the connection provides;
        atomicity of multi-step writes is up to the caller.
        """
        pool = await self.get_connection(tenant_id)
        async with pool.connection() as conn:
            return await operations(conn)

    async def execute_batch(self, tenant_id: str, statements: List[Statement]) -> None:
        """
        Apply statements as one indivisible unit: all commit or none do

        Raises:
            DatabaseConnectionError: If the database is unreachable
            TransactionError: If any statement is rejected (whole batch rolled back)
        """
        pool = await self.get_connection(tenant_id)
        try:
            async with pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cursor:
                        for query, params in statements:
                            await cursor.execute(query, params)
        except psycopg.OperationalError as e:
            logger.error(f"Batch aborted, database unavailable for tenant '{tenant_id}': {e}")
            raise DatabaseConnectionError(f"Database unavailable for tenant '{tenant_id}'") from e
        except psycopg.Error as e:
            logger.error(f"Batch of {len(statements)} statements rolled back for tenant '{tenant_id}': {e}")
            raise TransactionError(detail=str(e)) from e

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def invalidate_product_cache(self, tenant_id: str) -> int:
        return self.cache.invalidate(f"{tenant_id}:product")

    def invalidate_section_cache(self, tenant_id: str) -> int:
        return self.cache.invalidate(f"{tenant_id}:section")

    def invalidate_order_cache(self, tenant_id: str) -> int:
        return self.cache.invalidate(f"{tenant_id}:order")

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def cache_keys(self) -> List[str]:
        return self.cache.keys()
