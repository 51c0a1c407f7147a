"""
Configuration management for the mcp-manager backend service.

This module uses Pydantic Settings for environment-based configuration
with validation and type checking.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATABASE_FILENAME = "mcp-manager.sqlite3"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_MANAGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    debug: bool = Field(default=False, description="Enable debug mode")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    allowed_origins: List[str] = Field(
        default=["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Allowed CORS origins"
    )

    # Store settings
    data_dir: Path = Field(
        default=Path.home() / ".mcp-manager",
        description="Directory holding the managed server store"
    )
    database_url: Optional[str] = Field(
        default=None,
        description="Database connection URL (derived from data_dir when unset)"
    )

    # Client configuration files
    client_config_indent: int = Field(
        default=2,
        description="Indentation used when writing client configuration files"
    )

    @property
    def resolved_database_url(self) -> str:
        """Database URL, falling back to the SQLite file inside data_dir."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / DATABASE_FILENAME}"


# Global settings instance
settings = Settings()
