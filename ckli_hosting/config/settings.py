"""
Configuration for hosting providers using Pydantic settings.

Settings come from (highest priority first) explicit arguments, ``CKLI_*``
environment variables, and an optional YAML file:

    http_timeout: 20
    secrets_backends: [environment, keyring]
    hosts:
      git.acme.internal:
        provider: gitea
        api_url: https://git.acme.internal/api/v1/
      code.example.org:
        provider: gitlab
        is_default_public: true
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ckli_hosting.exceptions import ConfigurationError
from ckli_hosting import DEFAULT_USER_AGENT


class HostConfig(BaseModel):
    """Explicit provider configuration for one host.

    Used for hosts the detector cannot recognize from their name alone.
    """

    provider: Literal["github", "gitlab", "gitea"] = Field(..., description="Hosting software of the host")
    api_url: str | None = Field(default=None, description="API root, derived from the host when omitted")
    is_default_public: bool = Field(default=False, description="Create public repositories by default")

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if not v.startswith(("https://", "http://")):
            raise ValueError("api_url must be an http(s) URL")
        return v if v.endswith("/") else v + "/"


class HostingSettings(BaseSettings):
    """Hosting client settings."""

    model_config = SettingsConfigDict(
        env_prefix="CKLI_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    http_timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_connections: int = Field(default=10, ge=1, description="Connection pool size per provider")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")
    verify_ssl: bool = Field(default=True, description="Verify server certificates")
    log_level: str = Field(default="INFO", description="Logging level")
    secrets_backends: list[Literal["environment", "keyring"]] = Field(
        default_factory=lambda: ["environment", "keyring"],
        description="Secrets backends, queried in order",
    )
    hosts: dict[str, HostConfig] = Field(default_factory=dict, description="Explicit provider per host")

    @field_validator("hosts")
    @classmethod
    def normalize_host_names(cls, v: dict[str, HostConfig]) -> dict[str, HostConfig]:
        return {host.strip().lower(): config for host, config in v.items()}

    def transport_settings(self) -> dict[str, Any]:
        """Keyword arguments shared by every HTTP provider constructor."""
        return {
            "timeout": self.http_timeout,
            "max_connections": self.max_connections,
            "verify_ssl": self.verify_ssl,
            "user_agent": self.user_agent,
        }

    @classmethod
    def from_yaml(cls, config_path: str) -> HostingSettings:
        """Load settings from YAML file with environment variable interpolation.

        Supports ${VAR_NAME} and ${VAR_NAME:-default} substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            HostingSettings instance

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ${VAR_NAME} placeholders with environment variables.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
