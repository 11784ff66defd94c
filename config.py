# config.py
"""
Application settings loaded from environment variables.

Values are read from the process environment after `.env` has been loaded
with python-dotenv, so local development and deployed environments share
the same variable names.
"""
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
     """Application settings loaded from environment variables."""

     APP_NAME: str = "Waste Billing Backend"
     LOG_LEVEL: str = "INFO"
     PORT: int = 10000

     # Database: DATABASE_URL wins; otherwise the MS SQL parts are used
     DATABASE_URL: Optional[str] = None
     DB_SERVER: Optional[str] = None
     DB_PORT: str = "1433"
     DB_USER: Optional[str] = None
     DB_PASS: Optional[str] = None
     DB_NAME: Optional[str] = None
     SQL_ECHO: bool = False

     # Auth
     JWT_SECRET: str = ""
     JWT_ALGORITHM: str = "HS256"

     # Comma-separated list of allowed origins
     CORS_ORIGINS: str = ""

     # Billing
     DEFAULT_TAX_RATE: Decimal = Decimal("0.10")
     CURRENCY_UNIT: Decimal = Decimal("1")  # smallest currency unit (yen)
     COMMISSION_PRECISION: Decimal = Decimal("0.01")
     INVOICE_NUMBER_PREFIX: str = "TI"

     model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

     @field_validator("DEFAULT_TAX_RATE")
     @classmethod
     def _tax_rate_in_range(cls, value: Decimal) -> Decimal:
          if value < 0 or value > 1:
               raise ValueError("DEFAULT_TAX_RATE must be between 0 and 1")
          return value

     @property
     def cors_origin_list(self) -> list[str]:
          return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
     return Settings()


settings = get_settings()
