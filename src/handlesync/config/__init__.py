"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .fedora import FedoraConfig, get_fedora_config
from .handle_service import (
    DEFAULT_HANDLE_RESOLVER_URL,
    HandleServiceConfig,
    get_handle_service_config,
)
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging, resolve_log_level
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_HANDLE_RESOLVER_URL",
    "ConfigurationError",
    "DatabaseConfig",
    "FedoraConfig",
    "HandleServiceConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_fedora_config",
    "get_handle_service_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
    "resolve_log_level",
]
