"""Configuration management for appwrite-sync."""

from appwrite_sync.config.loader import load_config
from appwrite_sync.config.models import ClientConfig, Config, LoggingConfig, PollingConfig

__all__ = ["ClientConfig", "Config", "LoggingConfig", "PollingConfig", "load_config"]
