"""
Storefront Platform - Backend API
Multi-tenant storefront: product catalog, checkout and order lookup
"""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from app.api import cache, checkout, orders, products, sections
from app.core.cache import QueryCache
from app.core.config import settings
from app.core.database import DatabaseService, TenantConnectionRegistry

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-wide registry, cache and database service once"""
    registry = TenantConnectionRegistry()
    query_cache = QueryCache(default_ttl=settings.CACHE_DEFAULT_TTL)
    app.state.database = DatabaseService(registry, query_cache)
    logger.info(f"{settings.API_TITLE} {settings.API_VERSION} started")

    yield

    await registry.close_all()
    logger.info("Closed all tenant database connections")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description=settings.API_DESCRIPTION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Include API routers
    app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(sections.router, prefix="/api/v1/sections", tags=["Sections"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(checkout.router, prefix="/api/v1/checkout", tags=["Checkout"])
    app.include_router(cache.router, prefix="/api/v1/cache", tags=["Cache"])

    @app.get("/")
    async def root():
        """Root endpoint - API status"""
        return {
            "message": "Storefront API",
            "status": "online",
            "version": settings.API_VERSION,
        }

    @app.get("/health")
    async def health():
        """Health check: open tenant connections and cache stats"""
        db: DatabaseService = app.state.database
        return {
            "status": "healthy",
            "service": "storefront-api",
            "version": settings.API_VERSION,
            "database": db.registry.stats(),
            "cache": db.cache_stats(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.API_DEBUG)
