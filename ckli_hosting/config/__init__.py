"""Configuration management."""

from ckli_hosting.config.settings import HostConfig, HostingSettings

__all__ = ["HostConfig", "HostingSettings"]
