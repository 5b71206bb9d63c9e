"""Configuration loading and Pydantic models for obspec-fs."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Bucket and S3 connection configuration."""

    bucket_name: str = ""
    region: str = "us-east-1"
    endpoint: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None
    allow_http: bool = False
    conditional_writes: bool = False
    provider: str = "S3"

    def s3_options(self) -> dict[str, str]:
        """Keyword configuration for [S3Store][obstore.store.S3Store], skipping unset values."""
        options = {
            "region": self.region,
            "endpoint": self.endpoint,
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
        }
        return {key: value for key, value in options.items() if value}


class ObservabilityConfig(BaseModel):
    """Logging and metrics configuration."""

    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"
    metrics: bool = False


class Config(BaseModel):
    """Top-level obspec-fs configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _parse_storage(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the storage section from YAML data.

    Handles nested structure: storage.credentials.access_key_id -> access_key_id
    """
    if data is None:
        return {}

    result: dict[str, Any] = {
        "bucket_name": data.get("bucket", ""),
        "region": data.get("region", "us-east-1"),
        "endpoint": data.get("endpoint"),
        "allow_http": data.get("allow_http", False),
        "conditional_writes": data.get("conditional_writes", False),
        "provider": data.get("provider", "S3"),
    }

    credentials = data.get("credentials")
    if isinstance(credentials, dict):
        result["access_key_id"] = credentials.get("access_key_id")
        result["secret_access_key"] = credentials.get("secret_access_key")

    return result


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the observability section from YAML data.

    Handles nested structure: observability.logging.level -> log_level
    """
    if data is None:
        return {}

    result: dict[str, Any] = {"metrics": data.get("metrics", False)}

    logging_section = data.get("logging")
    if isinstance(logging_section, dict):
        result["log_level"] = logging_section.get("level", "INFO")
        result["log_format"] = logging_section.get("format", "text")

    return result


def load_config(path: Path) -> Config:
    """Load a Config from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated Config validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value has the wrong type.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return Config(
        storage=StorageConfig(**_parse_storage(raw.get("storage"))),
        observability=ObservabilityConfig(
            **_parse_observability(raw.get("observability"))
        ),
    )


__all__ = [
    "Config",
    "ObservabilityConfig",
    "StorageConfig",
    "load_config",
]
