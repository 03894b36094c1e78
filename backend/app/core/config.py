"""
Configuración centralizada de la aplicación
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


# Compiled-in fallback when TENANT_DATABASE_URL is not configured
DEFAULT_TENANT_DATABASE_URL = "postgresql://{tenant_id}-storefront.db.internal:5432/storefront"


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-tenant storefront API"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False

    # Tenant databases
    # The template must contain {tenant_id}, e.g. postgresql://{tenant_id}-shops.example.com:5432/shop
    TENANT_DATABASE_URL: Optional[str] = None
    DATABASE_PASSWORD: str = ""
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 10
    DB_CONNECT_TIMEOUT: float = 10.0

    # Query cache (seconds)
    CACHE_DEFAULT_TTL: int = 300

    # Checkout
    ORDER_ID_MAX_ATTEMPTS: int = 10
    CSRF_COOKIE_NAME: str = "csrfToken"

    LOG_LEVEL: str = "INFO"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000,http://localhost:4321"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    def get_tenant_database_url(self) -> str:
        """Database URL template, falling back to the compiled-in default"""
        return self.TENANT_DATABASE_URL or DEFAULT_TENANT_DATABASE_URL

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
