from typing import Literal

from dotenv import load_dotenv
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# Load .env file automatically
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage
    DATABASE_URL: str = "sqlite:///./payment_bridge.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600

    # Payment processor
    STRIPE_API_KEY: str
    STRIPE_API_BASE: str = "https://api.stripe.com"
    STATEMENT_DESCRIPTOR: str = "Castle"
    DEFAULT_CURRENCY: str = "usd"

    # App settings
    APP_NAME: str = "Payment Bridge"
    DEBUG: bool = False
    ENVIRONMENT: Literal["development", "production", "test"] = "development"

    # Observability (Optional)
    OTEL_SERVICE_NAME: str = "payment-bridge"
    METRICS_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True)
