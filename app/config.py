"""Configuration management for the FastAPI application."""

import logging
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Upstream generation service
    upstream_base_url: str = Field(
        default="https://apps.abacus.ai/v1",
        description="Base URL of the chat-completions compatible generation service"
    )
    upstream_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the generation service"
    )
    upstream_model: str = Field(
        default="gpt-4.1-mini",
        description="Model name requested from the generation service"
    )
    upstream_connect_timeout: float = Field(
        default=10.0,
        description="Seconds allowed to establish the upstream connection"
    )

    # Streaming configuration
    stream_idle_timeout: float = Field(
        default=60.0,
        description="Maximum seconds to wait for the next upstream chunk"
    )

    # Generation limits
    listing_max_tokens: int = Field(
        default=2000,
        description="Maximum tokens for listing generation"
    )
    response_max_tokens: int = Field(
        default=500,
        description="Maximum tokens for auto-response generation"
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    # Server configuration
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server to"
    )
    port: int = Field(
        default=8000,
        description="Port to bind the server to"
    )

    # FastAPI configuration
    debug: bool = Field(
        default=False,
        description="Enable debug mode with docs endpoints"
    )

    # CORS configuration
    cors_enabled: bool = Field(
        default=True,
        description="Enable CORS middleware"
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    cors_allow_credentials: bool = Field(
        default=False,
        description="Allow credentials in CORS requests"
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        description="Allowed HTTP methods for CORS"
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        description="Allowed headers for CORS"
    )

    # Security configuration
    trusted_hosts: Optional[list[str]] = Field(
        default=None,
        description="List of trusted hosts (None to disable)"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service.

    Args:
        level: Logging level name
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
