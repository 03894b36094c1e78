"""
Orders API Endpoints
Customer order lookup

Author: TM3
Date: 2026-10-19
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.database import DatabaseService
from app.core.exceptions import DatabaseConnectionError, QueryError
from app.core.tenancy import get_database, get_tenant_id
from app.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/lookup")
async def lookup_orders(
    order_code: Optional[str] = Query(None, description="Order code (ORD-YYYYMMDD-NNNN)"),
    buyer_phone: Optional[str] = Query(None, description="Buyer phone number"),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """
    Find open orders by order code or buyer phone

    Delivered and cancelled orders are not returned.
    """
    if not order_code and not buyer_phone:
        raise HTTPException(status_code=400, detail="Order code or phone number is required")

    try:
        repo = OrderRepository(db)
        orders = await repo.find_open_by_code_or_phone(tenant_id, order_code, buyer_phone)

    except (DatabaseConnectionError, QueryError):
        logger.exception(f"Order lookup failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail="Error fetching orders")

    return {
        "status": "success",
        "count": len(orders),
        "data": [order.to_dict() for order in orders],
    }
