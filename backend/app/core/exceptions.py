"""
Storefront error taxonomy

Raised by the data access layer and the checkout service, translated into
HTTP responses by the API routers.
"""
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    detail: str = ""

    def __init__(self, *args: Any, detail: str = "") -> None:
        str_args = [str(arg) for arg in args if arg]
        if not detail and str_args:
            detail, *str_args = str_args
        self.detail = detail or self.detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ValidationError(StorefrontError):
    """Malformed or out-of-range input. Rejected before any database access."""

    detail = "Invalid order data"

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, detail: str = "") -> None:
        super().__init__(detail=detail)
        self.errors = errors or []


class NotFoundError(StorefrontError):
    """One or more referenced entities do not exist."""

    detail = "Some products do not exist"

    def __init__(self, missing_ids: Optional[List[str]] = None, detail: str = "") -> None:
        super().__init__(detail=detail)
        self.missing_ids = missing_ids or []


class ConflictError(StorefrontError):
    """A generated identifier kept colliding with existing rows."""

    detail = "Could not generate a unique identifier"


class DatabaseConnectionError(StorefrontError):
    """The tenant database is unreachable."""

    detail = "Database connection failed"


class TransactionError(StorefrontError):
    """An atomic batch write was rejected. Nothing from the batch was applied."""

    detail = "Transaction failed"


class QueryError(StorefrontError):
    """The tenant database rejected a query or returned rows that do not fit the schema."""

    detail = "Query failed"
