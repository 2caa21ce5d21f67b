"""Pydantic configuration models for appwrite-sync."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ClientConfig(BaseModel):
    """Remote API connection configuration."""

    endpoint: str = "https://cloud.appwrite.io/v1"
    project_id: str = ""
    api_key: str = ""
    self_signed: bool = False
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Validate URL format and strip trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("endpoint must start with http:// or https://")
        return v.rstrip("/")

    @property
    def console_url(self) -> str:
        """Base URL of the web console (endpoint without the /v1 suffix)."""
        if self.endpoint.endswith("/v1"):
            return self.endpoint[: -len("/v1")]
        return self.endpoint


class PollingConfig(BaseModel):
    """Completion polling for asynchronous backend operations."""

    interval_seconds: float = Field(default=2.0, ge=0.0, le=60.0)
    max_iterations: int = Field(default=30, ge=1, le=10000)
    batch_size: int = Field(default=100, ge=1, le=10000)
    deployment_interval_factor: float = Field(default=1.5, ge=1.0, le=10.0)
    deployment_max_iterations: int = Field(default=400, ge=1, le=100000)


class LoggingConfig(BaseModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["console", "json"] = "console"
    file: Path | None = None
    rotation: str = "10 MB"
    retention: str = "7 days"


class Config(BaseSettings):
    """Root configuration for appwrite-sync."""

    client: ClientConfig = Field(default_factory=ClientConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    manifest_path: Path = Path("appwrite.json")

    model_config = {
        "env_prefix": "APPWRITE_SYNC_",
        "env_nested_delimiter": "__",
    }
