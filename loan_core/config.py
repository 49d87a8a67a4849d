"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class LoanCoreConfig(BaseSettings):
    """Loan calculation core configuration"""

    model_config = SettingsConfigDict(
        env_prefix="LOAN_CORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout

    # Calculation rules
    money_precision: int = Field(default=2, ge=0, le=8)  # Fraction digits on returned amounts
    days_in_year: int = Field(default=365, gt=0)  # Day-count basis for interest
    decimal_precision: int = Field(default=28, ge=16)  # Context precision for intermediate math
    max_installments: int = Field(default=10000, gt=0)  # Upper bound on schedule length


# Global configuration instance
config = LoanCoreConfig()


def get_config() -> LoanCoreConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LoanCoreConfig:
    """Reload configuration from environment"""
    global config
    config = LoanCoreConfig()
    return config
