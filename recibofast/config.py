"""
RecibôFast sync engine settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Local durable cache
    DATABASE_URL: str = "sqlite:///./data/recibofast.db"

    # Primary store (REST backend, /api/v1)
    PRIMARY_API_URL: str = ""
    PRIMARY_API_TOKEN: str = ""
    PRIMARY_PAGE_SIZE: int = 50

    # Secondary store (PostgREST / Supabase rf_receipts)
    SECONDARY_URL: str = ""
    SECONDARY_API_KEY: str = ""
    SECONDARY_OWNER_ID: str = ""

    # Re-authentication (password grant)
    AUTH_URL: str = ""
    ACCOUNT_EMAIL: str = ""

    REMOTE_TIMEOUT_SECONDS: float = 10.0

    # Document defaults
    DEFAULT_PAYMENT_METHOD: str = "PIX"
    DEFAULT_SIGNATURE_REF: str = ""

    # Run a reconciliation pass right after the cache is loaded
    SYNC_ON_STARTUP: bool = True

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    DATA_DIR: str = "./data"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
