# license_server/config.py
import os
import re
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, field_validator
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file

PRODUCT_CODE_RE = re.compile(r"[0-9A-Z]{4}")

class Settings(BaseModel):
    # Defaults come from the environment, so they are validated too
    model_config = ConfigDict(validate_default=True)

    # General app settings
    APP_NAME: str = "QualityBytes License Server"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))

    # CORS origins for the storefront client
    CORS_ORIGINS: list[str] = [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]

    # Pricing: flat price per seat per month, yearly billing gets a discount
    price_per_user: Decimal = Decimal(os.getenv("PRICE_PER_USER", "5.00"))
    yearly_discount: Decimal = Decimal(os.getenv("YEARLY_DISCOUNT", "0.10"))

    # Free trial
    trial_days: int = int(os.getenv("TRIAL_DAYS", "30"))
    trial_seat_count: int = int(os.getenv("TRIAL_SEAT_COUNT", "100"))

    # License key format: QB-<product code>-XXXX-XXXX-XXXX
    license_key_product_code: str = os.getenv("LICENSE_KEY_PRODUCT_CODE", "QBYT")
    # Fresh draws attempted when a generated key collides with an existing one
    license_key_max_attempts: int = int(os.getenv("LICENSE_KEY_MAX_ATTEMPTS", "10"))

    @field_validator("license_key_product_code")
    @classmethod
    def check_product_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not PRODUCT_CODE_RE.fullmatch(v):
            raise ValueError("LICENSE_KEY_PRODUCT_CODE must be 4 characters from 0-9 and A-Z")
        return v

settings = Settings()  # Instantiate configuration
