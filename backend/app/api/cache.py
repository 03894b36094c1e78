"""
Cache Admin API Endpoints
Query cache statistics, keys and reset
"""
from fastapi import APIRouter, Depends

from app.core.database import DatabaseService
from app.core.tenancy import get_database

router = APIRouter()


@router.get("/")
async def get_cache_status(db: DatabaseService = Depends(get_database)):
    """Stats, keys and the available actions"""
    return {
        "status": "success",
        "data": {
            "stats": db.cache_stats(),
            "keys": db.cache_keys(),
            "actions": ["stats", "keys", "clear"],
        }
    }


@router.get("/stats")
async def get_cache_stats(db: DatabaseService = Depends(get_database)):
    return {"status": "success", "data": db.cache_stats()}


@router.get("/keys")
async def get_cache_keys(db: DatabaseService = Depends(get_database)):
    return {"status": "success", "data": db.cache_keys()}


@router.post("/clear")
async def clear_cache(db: DatabaseService = Depends(get_database)):
    """Drop every cached query result and reset the counters"""
    db.clear_cache()
    return {"status": "success", "message": "Cache cleared successfully"}
