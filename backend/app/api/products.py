"""
Products API Endpoints
Storefront product listing and detail queries

Author: TM3
Date: 2026-10-19
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.database import DatabaseService
from app.core.exceptions import DatabaseConnectionError, QueryError
from app.core.tenancy import get_database, get_tenant_id
from app.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
async def get_products(
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=200),
    min_price: float = Query(0, ge=0),
    max_price: float = Query(1_000_000_000, ge=0),
    section: Optional[str] = Query(None, description="Section id ('all' for every section)"),
    search: Optional[str] = Query(None, description="Search by title"),
    sort: str = Query('newest', description="newest, price-asc, price-desc or featured"),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """
    Filtered product listing

    Pinned products are placed at their pinned position before pagination.
    """
    try:
        repo = ProductRepository(db)
        result = await repo.filter_products(
            tenant_id,
            skip=skip,
            take=take,
            min_price=min_price,
            max_price=max_price,
            section=section,
            search=search,
            sort=sort,
        )

    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Product listing failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching products")

    return {"status": "success", **result}


@router.get("/by-path")
async def get_product_by_path(
    path: str = Query(..., min_length=1, description="Storefront product path"),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    try:
        product = await ProductRepository(db).find_by_path(tenant_id, path)
    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Product lookup by path failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching product")

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return {"status": "success", "data": product}


@router.get("/related")
async def get_related_products(
    product_id: str = Query(..., description="Product to find relatives for"),
    section_ids: str = Query(..., description="Comma-separated section ids"),
    take: int = Query(4, ge=1, le=50),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """Newest active products sharing a section with product_id"""
    sections = [section_id.strip() for section_id in section_ids.split(",") if section_id.strip()]
    if not sections:
        raise HTTPException(status_code=400, detail="section_ids and product_id are required")

    try:
        products = await ProductRepository(db).find_related(tenant_id, sections, product_id, take)
    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Related products failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching related products")

    return {"status": "success", "total": len(products), "data": products}


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """Product with sections, variants and variant groups"""
    try:
        product = await ProductRepository(db).find_with_details(tenant_id, product_id)
    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Product detail failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching product")

    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")

    return {"status": "success", "data": product}
