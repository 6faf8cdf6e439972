from pydantic_settings import BaseSettings
from typing import List
from decimal import Decimal

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./railbooker.db"
    DATABASE_ECHO: bool = False

    # Application
    PROJECT_NAME: str = "RailBooker"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # Booking rules
    CANCELLATION_FEE_RATE: Decimal = Decimal("0.10")
    SERVICE_FEE: Decimal = Decimal("50")
    DEFAULT_BASE_PRICE: Decimal = Decimal("1500")
    MAX_PASSENGERS_PER_BOOKING: int = 6

    # Admin
    QUERY_LOG_SIZE: int = 100

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
