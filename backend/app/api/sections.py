"""
Sections API Endpoints
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.database import DatabaseService
from app.core.exceptions import DatabaseConnectionError, QueryError
from app.core.tenancy import get_database, get_tenant_id
from app.repositories.product_repository import ProductRepository
from app.repositories.section_repository import SectionRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def get_sections(
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """Sections in display order with their active product counts"""
    try:
        sections = await SectionRepository(db).find_all_with_counts(tenant_id)
    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Section listing failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching sections")

    return {
        "status": "success",
        "count": len(sections),
        "data": [section.model_dump() for section in sections],
    }


@router.get("/{section_id}/products")
async def get_section_products(
    section_id: str,
    limit: int = Query(20, ge=1, le=200),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """Newest active products of a section"""
    try:
        products = await ProductRepository(db).find_by_section(tenant_id, section_id, limit)
    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Section products failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching products")

    return {"status": "success", "count": len(products), "data": products}
