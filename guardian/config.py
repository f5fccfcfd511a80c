"""
Configuration management for the admission webhook using Pydantic.
"""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseSettings):
    """Configuration shared by every web server."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server configuration
    bind_address: str = Field(default="127.0.0.1")
    port: int = Field(default=8443, ge=1, le=65535)
    uds_path: Optional[str] = Field(default=None)

    # TLS configuration
    tls_cert_path: Optional[Path] = Field(default=None)
    tls_key_path: Optional[Path] = Field(default=None)

    # Debug mode
    debug: bool = Field(default=False)

    @field_validator("tls_cert_path", "tls_key_path")
    @classmethod
    def validate_paths(cls, v):
        """Validate that TLS paths exist if specified."""
        if v is not None:
            path = Path(v) if not isinstance(v, Path) else v
            if not path.exists():
                raise ValueError(f"Path does not exist: {path}")
            return path
        return v

    def export_json(self) -> str:
        """Export configuration as JSON."""
        return self.model_dump_json(indent=2)


class AdmissionConfig(ServerConfig):
    """Main configuration for the security context admission webhook."""

    # Defaults applied when neither the pod nor its labels set the field
    default_run_as_user: int = Field(default=1000, ge=0)
    default_run_as_group: int = Field(default=1000, ge=0)

    # Upper bound for a single pipeline pass
    request_timeout: float = Field(default=5.0, gt=0)

    # Config file support
    config_file: Optional[Path] = Field(default=None)

    def __init__(self, **kwargs):
        """Initialize config with support for a JSON config file."""
        config_file = kwargs.get("config_file") or os.environ.get("CONFIG_FILE")

        # Load from config file if it exists
        file_config = {}
        if config_file and Path(config_file).exists():
            with open(config_file, "r") as f:
                file_config = json.load(f)

        # File values are passed as init kwargs, so they override the
        # environment; explicit kwargs override both.
        merged_config = {**file_config, **kwargs}

        super().__init__(**merged_config)


def load_config(**kwargs) -> AdmissionConfig:
    """Load configuration with environment variables and optional overrides."""
    return AdmissionConfig(**kwargs)
