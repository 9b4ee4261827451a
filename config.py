"""
Chiffres-Z3 Configuration Module

Centralized configuration for the bounded model checking solver.
Uses Pydantic Settings for environment variable loading with sensible defaults.

Environment variables can be set directly or via a .env file in the project root.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """
    Global configuration settings for Chiffres-Z3.

    All settings can be overridden via environment variables with the same name
    (case-insensitive). For example, set BV_BITS=16 in environment.
    """

    # ==========================================================================
    # Encoding Settings
    # ==========================================================================

    BV_BITS: int = Field(
        default=32,
        gt=1,
        description="Width of the two's-complement bit-vectors holding stack values"
    )

    NO_OVERFLOWS: bool = Field(
        default=False,
        description="If True, reject numerals outside the signed range of BV_BITS "
                    "before any formula is built"
    )

    GUARD_INTERMEDIATE_OVERFLOW: bool = Field(
        default=False,
        description="If True, binary operators may only fire when their signed "
                    "result fits in BV_BITS (no wrap-around on add/sub/mul/div)"
    )

    # ==========================================================================
    # Z3 Solver Settings
    # ==========================================================================

    Z3_TIMEOUT: int = Field(
        default=0,
        ge=0,
        description="Timeout in milliseconds for each satisfiability/optimization "
                    "check. 0 means unlimited."
    )

    # ==========================================================================
    # Logging Settings
    # ==========================================================================

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Global log level: DEBUG, INFO, WARNING, ERROR"
    )

    LOG_JSON_MODE: bool = Field(
        default=False,
        description="If True, output logs in JSON format for structured aggregation"
    )

    LOG_SHOW_FORMULAS: bool = Field(
        default=False,
        description="If True, log every encoded formula (ENCODER category). "
                    "Formulas grow quickly with the depth."
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance - import this in other modules
settings = Settings()
