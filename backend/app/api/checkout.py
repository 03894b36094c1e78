"""
Checkout API Endpoint
Creates an order from the storefront checkout form

Author: TM3
Date: 2026-10-19
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status

from app.core.database import DatabaseService
from app.core.exceptions import (
    ConflictError,
    DatabaseConnectionError,
    NotFoundError,
    QueryError,
    TransactionError,
    ValidationError,
)
from app.core.tenancy import get_database, get_tenant_id, verify_csrf_token
from app.services.checkout_service import CheckoutService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", status_code=status.HTTP_201_CREATED, dependencies=[Depends(verify_csrf_token)])
async def create_order(
    payload: Dict[str, Any] = Body(...),
    tenant_id: str = Depends(get_tenant_id),
    db: DatabaseService = Depends(get_database),
):
    """
    Create an order

    Body: buyer fields, payment_method, products [{id, quantity, variant}],
    optional shipping_fee. Requires the X-CSRF-Token header to match the
    csrfToken cookie.

    Returns:
        201 with order_id and order_code
    """
    service = CheckoutService(db)

    try:
        result = await service.create_order(tenant_id, payload)
        return result.to_dict()

    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"error": e.detail, "details": e.errors})

    except NotFoundError as e:
        raise HTTPException(status_code=400, detail={"error": e.detail, "missing_ids": e.missing_ids})

    except ConflictError as e:
        raise HTTPException(status_code=409, detail={"error": e.detail})

    except (DatabaseConnectionError, QueryError, TransactionError):
        logger.exception(f"Checkout failed for tenant '{tenant_id}'")
        raise HTTPException(status_code=500, detail={"error": "Error processing order"})
