"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from ``TASKLEDGER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage Configuration
    app_name: str = Field(default="taskManagementApp", description="Storage namespace, prefixed to every key")
    schema_version: str = Field(default="2.0", description="Version stamped on every snapshot envelope")
    storage_backend: Literal["file", "memory"] = Field(default="file", description="Key-value store implementation")
    data_dir: Path = Field(default=Path("data/store"), description="Directory for the file key-value store")
    strict_persistence: bool = Field(
        default=True, description="Raise when a mutation cannot be written to storage"
    )

    # Application Configuration
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for log files")
