"""
Configuration module for the web bootstrap service.

This module provides centralized configuration management using Pydantic settings.
All configuration values can be overridden via environment variables or .env file.
Implements validation and type safety for all configuration parameters.
"""

import math
import re
from pathlib import Path
from typing import List, Literal, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGIN = "http://localhost:5173"

_BYTE_UNITS = {
    "b": 1,
    "kb": 1 << 10,
    "mb": 1 << 20,
    "gb": 1 << 30,
    "tb": 1 << 40,
    "pb": 1 << 50,
}

_BYTE_SIZE_PATTERN = re.compile(
    r"^\s*(?P<number>[+-]?\d+(?:\.\d+)?)\s*(?P<unit>b|kb|mb|gb|tb|pb)?\s*$",
    re.IGNORECASE,
)


def parse_byte_size(value: Union[str, int]) -> int:
    """
    Convert a human-readable size such as ``"16kb"`` into a number of bytes.

    Units are binary multiples (1kb == 1024 bytes). A bare number is taken
    as bytes and fractional results are floored.

    Args:
        value: Size string or integer byte count

    Returns:
        Size in bytes

    Raises:
        ValueError: If the value cannot be parsed or is negative
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid byte size: {value!r}")

    if isinstance(value, int):
        size = value
    else:
        match = _BYTE_SIZE_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid byte size: {value!r}")

        unit = (match.group("unit") or "b").lower()
        size = math.floor(float(match.group("number")) * _BYTE_UNITS[unit])

    if size < 0:
        raise ValueError(f"Byte size cannot be negative: {value!r}")

    return size


class Settings(BaseSettings):
    """
    Application settings for the web bootstrap service.

    All settings can be configured via environment variables.
    Settings are validated on instantiation to ensure correct configuration.

    Attributes:
        SERVICE_NAME: Name used for log identification
        DEBUG: Enable debug mode (human-readable logs, API docs)
        HOST: Server bind address
        PORT: Server port number
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        BODY_LIMIT: Maximum size of JSON and URL-encoded request bodies
        PARAMETER_LIMIT: Maximum number of URL-encoded parameters
        URLENCODED_EXTENDED: Parse nested bracket syntax in URL-encoded bodies
        STATIC_ROOT: Directory served verbatim for matching request paths
        STATIC_MAX_AGE: Cache-Control max-age for static files in seconds
        CORS_ORIGIN: Comma-separated list of allowed cross-origin callers
    """

    # Service configuration
    SERVICE_NAME: str = Field(default="web-bootstrap")
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # Server configuration
    HOST: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number",
    )

    # Logging configuration
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Body parsing
    BODY_LIMIT: str = Field(
        default="16kb",
        description="Maximum accepted size for JSON and URL-encoded bodies",
    )
    PARAMETER_LIMIT: int = Field(
        default=1000,
        ge=1,
        description="Maximum number of parameters in a URL-encoded body",
    )
    URLENCODED_EXTENDED: bool = Field(
        default=True,
        description="Parse nested objects and arrays in URL-encoded bodies",
    )

    # Static files
    STATIC_ROOT: str = Field(
        default="public",
        description="Directory whose contents are served as static assets",
    )
    STATIC_MAX_AGE: int = Field(
        default=0,
        ge=0,
        description="Cache-Control max-age for static files in seconds",
    )

    # CORS
    CORS_ORIGIN: str = Field(
        default=DEFAULT_CORS_ORIGIN,
        description="Comma-separated list of allowed origins",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("BODY_LIMIT")
    @classmethod
    def validate_body_limit(cls, value: str) -> str:
        """
        Validate that the body limit is a parseable size string.

        Args:
            value: The size string to validate

        Returns:
            The size string unchanged

        Raises:
            ValueError: If the size cannot be parsed
        """
        parse_byte_size(value)
        return value

    @property
    def body_limit_bytes(self) -> int:
        """Body limit converted to bytes."""
        return parse_byte_size(self.BODY_LIMIT)

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        origins = [
            origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()
        ]
        return origins or [DEFAULT_CORS_ORIGIN]

    @property
    def static_root_path(self) -> Path:
        """Static root resolved to an absolute path."""
        return Path(self.STATIC_ROOT).resolve()


# Global settings instance
settings = Settings()
