"""Application configuration helpers."""

from __future__ import annotations

from .entitlements import EntitlementConfig, get_entitlement_config
from .env import int_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .notifications import NotificationConfig, get_notification_config
from .processing import ProcessingConfig, get_processing_config
from .spotify import (
    DEFAULT_SPOTIFY_SCOPES,
    PLAYLIST_MODIFY_SCOPES,
    PLAYLIST_READ_SCOPES,
    SpotifyConfig,
    get_spotify_config,
    merge_spotify_scopes,
)
from .storage import DatabaseConfig, default_data_dir, get_database_config, get_http_cache_path

__all__ = [
    "DEFAULT_SPOTIFY_SCOPES",
    "PLAYLIST_MODIFY_SCOPES",
    "PLAYLIST_READ_SCOPES",
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "EntitlementConfig",
    "MissingConfigurationError",
    "NotificationConfig",
    "ProcessingConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SpotifyConfig",
    "configure_logging",
    "default_data_dir",
    "get_database_config",
    "get_entitlement_config",
    "get_http_cache_path",
    "get_notification_config",
    "get_processing_config",
    "get_spotify_config",
    "int_env_var",
    "merge_spotify_scopes",
    "optional_env_var",
    "require_env_vars",
]
