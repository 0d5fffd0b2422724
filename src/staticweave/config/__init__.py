"""StaticWeave configuration - config loading and models."""

from .loader import (
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    CacheConfig,
    EngineConfig,
    LoggingConfig,
    RemoteConfig,
    TelemetryConfig,
    WeaverConfig,
)

__all__ = [
    # Config models
    "WeaverConfig",
    "EngineConfig",
    "RemoteConfig",
    "CacheConfig",
    "LoggingConfig",
    "TelemetryConfig",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
    "deep_merge",
]
