"""
Application configuration management.

Handles loading configuration from environment variables and .env files.
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class ApplicationSettings(BaseSettings):
    """Application configuration."""

    app_name: str = Field(default="capserve", alias="APP_NAME")
    app_env: str = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("app_env")
    @classmethod
    def validate_environment(cls, v: Any) -> str:
        allowed = {"development", "testing", "staging", "production"}
        v_str = str(v)
        if v_str not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v_str

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = str(v).upper()
        if v not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return str(v)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class ServerSettings(BaseSettings):
    """MCP server configuration."""

    server_name: str = Field(default="capserve", alias="MCP_SERVER_NAME")

    # Transport settings
    transport: str = Field(default="stdio", alias="MCP_TRANSPORT")
    host: str = Field(default="127.0.0.1", alias="MCP_HOST")
    port: int = Field(default=8000, alias="MCP_PORT")
    path: str = Field(default="/mcp", alias="MCP_PATH")

    # Upper bound on any single tool, resource or prompt handler
    handler_timeout: float = Field(default=30.0, alias="MCP_HANDLER_TIMEOUT", gt=0)

    # Extra YAML prompt definitions; None uses the XDG default
    prompts_dir: Path | None = Field(None, alias="MCP_PROMPTS_DIR")

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, v: Any) -> str:
        allowed = {"http", "stdio", "sse"}
        if str(v) not in allowed:
            raise ValueError(f"MCP_TRANSPORT must be one of {allowed}")
        return str(v)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections."""

    application: ApplicationSettings = Field(default_factory=ApplicationSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)  # type: ignore[arg-type]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def load_settings() -> Settings:
    """
    Load settings from environment variables and .env file.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()


_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get cached settings instance (singleton pattern).

    Returns:
        Settings: Cached settings instance
    """
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached instance so the next call re-reads the environment."""
    global _settings
    _settings = None
