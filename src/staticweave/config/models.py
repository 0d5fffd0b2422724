"""StaticWeave configuration data models."""

from dataclasses import dataclass, field

from staticweave.types import LogFormat, LogLevel, MissingPolicy


@dataclass
class EngineConfig:
    """Template engine configuration."""

    base_path: str = "templates"
    ttl_seconds: float = 60.0
    extension: str = ".html"
    missing: MissingPolicy = MissingPolicy.KEEP
    open_delim: str = "{{"
    close_delim: str = "}}"
    trim_whitespace: bool = False  # Accept {{ name }} as well as {{name}}
    cache_rendered: bool = False  # Also memoize rendered output per context
    templates: dict[str, str] = field(default_factory=dict)  # name -> inline body
    remotes: dict[str, str] = field(default_factory=dict)  # name -> URL


@dataclass
class RemoteConfig:
    """Remote template fetching configuration."""

    timeout: float = 10.0
    headers: dict[str, str] = field(default_factory=dict)
    follow_redirects: bool = True


@dataclass
class CacheConfig:
    """Template cache configuration."""

    capacity: int | None = None  # None = unbounded


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    truncate_at: int = 200


@dataclass
class TelemetryConfig:
    """Telemetry configuration.

    Attributes:
        enabled: Whether telemetry is enabled
        service_name: Service name for telemetry
        service_version: Service version
        metrics_enabled: Whether metrics are collected
        traces_enabled: Whether render spans are recorded
        attributes: Extra OTEL resource attributes
    """

    enabled: bool = False
    service_name: str = "staticweave"
    service_version: str = "0.1.0"
    metrics_enabled: bool = True
    traces_enabled: bool = True
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class WeaverConfig:
    """Complete StaticWeave configuration."""

    engine: EngineConfig = field(default_factory=EngineConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
