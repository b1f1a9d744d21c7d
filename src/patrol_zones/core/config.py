"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        description="Async SQLAlchemy connection string (postgresql+asyncpg://...)",
    )
    database_schema: str | None = Field(
        default=None,
        description="PostgreSQL schema for isolated environments (e.g., pr_42)",
    )

    @field_validator("database_schema")
    @classmethod
    def validate_database_schema(cls, v: str | None) -> str | None:
        if v is None:
            return None
        if not re.match(r"^[a-z_][a-z0-9_]{0,62}$", v):
            msg = "Invalid database_schema: must match ^[a-z_][a-z0-9_]{0,62}$"
            raise ValueError(msg)
        return v

    # Geocoding
    geocoder_provider: str = Field(
        default="nominatim",
        description="Geocoder provider used by the free-text resolution pipeline",
    )
    geocoder_timeout: float = Field(
        default=10.0,
        description="Total time budget in seconds for the geocoding step of one resolution",
        gt=0,
    )
    geocoder_nominatim_email: str = Field(
        default="",
        description="Email for Nominatim usage policy compliance",
    )
    geocoder_user_agent: str = Field(
        default="patrol-zones/0.1",
        description="User-Agent header sent to the geocoding provider",
    )
    geocoder_city: str = Field(
        default="",
        description="City (district) appended to geocoding queries",
    )
    geocoder_region: str = Field(
        default="",
        description="Region (province/county) appended to geocoding queries",
    )
    geocoder_country: str = Field(
        default="Peru",
        description="Country name appended to geocoding queries",
    )
    geocoder_country_code: str = Field(
        default="pe",
        description="ISO 3166-1 alpha-2 code restricting provider results",
    )

    @field_validator("geocoder_country_code")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        if not re.match(r"^[A-Za-z]{2}$", v):
            msg = "geocoder_country_code must be a two-letter ISO code"
            raise ValueError(msg)
        return v.lower()

    # Resolution pipeline
    resolution_street_candidate_limit: int = Field(
        default=10,
        description="Maximum street candidates considered for a parsed street name",
        gt=0,
    )
    resolution_reference_limit: int = Field(
        default=200,
        description="Maximum reference addresses scanned by the nearest-in-block stage",
        gt=0,
    )
    resolution_nearest_zone_radius_meters: float = Field(
        default=1000.0,
        description="Search radius for the nearest-zone-by-coordinate stage",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging, rotated daily, when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Write log records to stderr as JSON instead of text",
    )
    log_retention_days: int = Field(
        default=7,
        description="Days of rotated log files to keep",
        ge=1,
    )


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
