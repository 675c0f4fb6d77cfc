"""
Commerce Metrics
Centralized Configuration Management

Pydantic settings with environment variable support. The reporting time
zone lives here because day bucketing of payment timestamps depends on it.
"""

from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsSettings(BaseSettings):
    """Analytics engine configuration"""
    
    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)
    
    reporting_timezone: str = Field(
        default="UTC",
        alias="REPORTING_TIMEZONE",
        description="Time zone used to truncate timestamps to calendar days",
    )
    money_places: int = Field(default=2, alias="MONEY_PLACES", description="Fractional digits for money")
    average_places: int = Field(default=6, alias="AVERAGE_PLACES", description="Fractional digits for AVG results")
    seed_data_dir: Optional[str] = Field(
        default=None,
        alias="SEED_DATA_DIR",
        description="Directory of <table>.csv files loaded at API startup",
    )
    
    @field_validator("reporting_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject time zones the tz database does not know"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {v}") from e
        return v
    
    @property
    def tzinfo(self) -> ZoneInfo:
        """Reporting time zone as a tzinfo"""
        return ZoneInfo(self.reporting_timezone)


class MonitoringSettings(BaseSettings):
    """Logging configuration"""
    
    model_config = SettingsConfigDict(env_prefix="", populate_by_name=True)
    
    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")
    
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only the stdlib level names"""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level
    
    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """json for machines, text for a terminal"""
        fmt = v.lower()
        if fmt not in ("json", "text"):
            raise ValueError(f"Log format must be json or text, got {v}")
        return fmt


class ApiSettings(BaseSettings):
    """Reporting API configuration"""
    
    model_config = SettingsConfigDict(env_prefix="API_")
    
    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )


class Settings(BaseSettings):
    """
    Main Application Settings
    
    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )
    
    app_name: str = Field(default="commerce-metrics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    version: str = Field(default="1.0.0", description="Application version")
    
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    
    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()
    
    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.
    
    Returns:
        Settings: Application settings instance
    """
    return Settings()
