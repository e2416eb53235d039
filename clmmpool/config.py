"""
Configuration settings for the CLMM math engine

Loads environment variables and provides calculation defaults.
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Engine settings"""

    # Fee rate denominator (fee_rate / FEE_RATE_DENOMINATOR)
    FEE_RATE_DENOMINATOR: int = int(os.getenv("CLMM_FEE_RATE_DENOMINATOR", 10000))

    # Swap quote limits
    MAX_CROSS_TICKS: int = int(os.getenv("CLMM_MAX_CROSS_TICKS", 40))

    # Decimal context precision for price / APR math
    DECIMAL_PRECISION: int = int(os.getenv("CLMM_DECIMAL_PRECISION", 64))

    # APR estimation
    APR_PERIOD_DAYS: int = int(os.getenv("CLMM_APR_PERIOD_DAYS", 7))
    BLOCKS_PER_SECOND: str = os.getenv("CLMM_BLOCKS_PER_SECOND", "0.5")

    # Logging
    LOG_LEVEL: str = os.getenv("CLMM_LOG_LEVEL", "WARNING").upper()


# Create global settings instance
settings = Settings()


# Validate critical settings on import
if settings.FEE_RATE_DENOMINATOR <= 0:
    raise ValueError(
        f"CLMM_FEE_RATE_DENOMINATOR must be positive: {settings.FEE_RATE_DENOMINATOR}"
    )
