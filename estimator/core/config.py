# estimator/core/config.py
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


class Settings:
    # --- API Info ---
    API_TITLE: str = "Fab Shop Estimating API"
    API_DESCRIPTION: str = "Estimate pricing and part-feasibility rules for the fabrication shop console."
    API_VERSION: str = "1.0.0"

    # --- Server Configuration ---
    PORT: int = int(os.getenv("PORT", "8000"))
    HOST: str = os.getenv("HOST", "0.0.0.0")
    CORS_ORIGINS: list = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if origin.strip()
    ]

    # --- Storage ---
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./estimator.db")
    RULE_TABLES_PATH: str = os.getenv("RULE_TABLES_PATH", "config/rule_tables.yaml")
    LOG_CONFIG_PATH: str = os.getenv("LOG_CONFIG_PATH", "logging.conf")
    RULE_CACHE_SIZE: int = int(os.getenv("RULE_CACHE_SIZE", "32"))

    # --- Weld Formula ---
    WELD_PASS_THICKNESS: Decimal = Decimal("0.125")  # inches of plate per weld pass
    INCHES_PER_FOOT: Decimal = Decimal("12")

    # --- Roll Limits ---
    # Used when no roll-limit rule matches the part's OD
    DEFAULT_STEEL_ROLL_MULTIPLIER: Decimal = Decimal("8")
    DEFAULT_ALUMINUM_ROLL_MULTIPLIER: Decimal = Decimal("12")
    OD_DECIMAL_PLACES: int = 3

    # --- Money ---
    CURRENCY_PLACES: int = 2

    # Card payment quotes (Square fees)
    CARD_IN_PERSON_PERCENT: Decimal = Decimal("2.6")
    CARD_MANUAL_PERCENT: Decimal = Decimal("3.5")
    CARD_FIXED_FEE: Decimal = Decimal("0.15")


settings = Settings()
