"""StaticWeave configuration loader."""

import logging
import os
import re
import typing
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from staticweave.errors import create_error
from staticweave.types import (
    LogFormat,
    LogLevel,
    MissingPolicy,
    ValidationIssue,
    ValidationResult,
)

from .models import WeaverConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "STATICWEAVE_CONFIG_PATH"
LOCAL_CONFIG_NAME = "staticweave.yaml"

VALID_SECTIONS = {"engine", "remote", "cache", "logging", "telemetry"}


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        TemplateError: If required var not set
    """
    # Pattern: ${VAR}, ${VAR:-default}, ${VAR:?error}
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _resolve_env_vars_recursive(data: Any) -> Any:
    """Recursively resolve env vars in data structure."""
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigLoader:
    """Load and validate StaticWeave configuration."""

    def __init__(self) -> None:
        """Initialize config loader."""
        self._config: WeaverConfig | None = None
        self._config_path: Path | None = None

    @property
    def config_path(self) -> Path | None:
        return self._config_path

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> WeaverConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. STATICWEAVE_CONFIG_PATH environment variable
        2. ./staticweave.yaml
        3. ~/.staticweave/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found

        Returns:
            Loaded WeaverConfig instance

        Raises:
            TemplateError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                logger.info("No config file found, using default configuration")
                return self.load_defaults()
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration root must be a mapping: {config_path}",
            )

        data = _resolve_env_vars_recursive(data)

        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> WeaverConfig:
        """Load default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> WeaverConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded WeaverConfig instance

        Raises:
            TemplateError: If configuration is invalid
        """
        validation = self.validate(data)
        for warning in validation.warnings:
            logger.warning(warning.message)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._convert_field(WeaverConfig, data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        logger.debug("Configuration loaded successfully")
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        def error(path: str, message: str) -> None:
            errors.append(ValidationIssue(path=path, message=message, severity="error"))

        for key in data:
            if key not in VALID_SECTIONS:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for section in VALID_SECTIONS & data.keys():
            if not isinstance(data[section], dict):
                error(section, f"{section} must be a dictionary")

        engine = data.get("engine")
        if isinstance(engine, dict):
            ttl = engine.get("ttl_seconds")
            if ttl is not None and (not _is_number(ttl) or ttl < 0):
                error("engine.ttl_seconds", "ttl_seconds must be a non-negative number")
            missing = engine.get("missing")
            if missing is not None and missing not in {p.value for p in MissingPolicy}:
                error("engine.missing", "missing must be one of: keep, empty, error")
            for delim in ("open_delim", "close_delim"):
                if delim in engine and (not isinstance(engine[delim], str) or not engine[delim]):
                    error(f"engine.{delim}", f"{delim} must be a non-empty string")
            for flag in ("cache_rendered", "trim_whitespace"):
                if flag in engine and not isinstance(engine[flag], bool):
                    error(f"engine.{flag}", f"{flag} must be true or false")
            for mapping in ("templates", "remotes"):
                if mapping in engine and not isinstance(engine[mapping], dict):
                    error(f"engine.{mapping}", f"{mapping} must be a dictionary")

        remote = data.get("remote")
        if isinstance(remote, dict):
            timeout = remote.get("timeout")
            if timeout is not None and (not _is_number(timeout) or timeout <= 0):
                error("remote.timeout", "timeout must be a positive number")

        cache = data.get("cache")
        if isinstance(cache, dict):
            capacity = cache.get("capacity")
            if capacity is not None and (
                not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0
            ):
                error("cache.capacity", "capacity must be a non-negative integer or null")

        log_section = data.get("logging")
        if isinstance(log_section, dict):
            if "level" in log_section and log_section["level"] not in {lv.value for lv in LogLevel}:
                error("logging.level", "level must be one of: DEBUG, INFO, WARN, ERROR")
            if "format" in log_section and log_section["format"] not in {
                fmt.value for fmt in LogFormat
            }:
                error("logging.format", "format must be one of: colored, json")

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> WeaverConfig:
        """Get current configuration.

        Raises:
            TemplateError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def reload(self) -> WeaverConfig:
        """Reload configuration from the file it was loaded from.

        Raises:
            TemplateError: If no config path set or reload fails
        """
        if self._config_path is None:
            raise create_error("CONFIG_INVALID", detail="No config path set, cannot reload")
        return self.load(self._config_path, use_defaults=False)

    def _resolve_config_path(self) -> Path:
        """Resolve config file path using resolution order."""
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)

        local_path = Path(LOCAL_CONFIG_NAME)
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".staticweave" / "config.yaml"
        if home_path.exists():
            return home_path

        # Not found - use local path as default
        return local_path

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a raw YAML value to the annotated field type.

        Args:
            field_type: Expected field type
            value: Value to convert

        Returns:
            Converted value
        """
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            if args:
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            if not isinstance(value, dict):
                return value
            args = typing.get_args(field_type)
            if args and len(args) == 2:
                return {str(k): self._convert_field(args[1], v) for k, v in value.items()}
            return value

        if is_dataclass(field_type) and isinstance(field_type, type):
            if not isinstance(value, dict):
                return value
            kwargs = {
                f.name: self._convert_field(f.type, value[f.name])
                for f in fields(field_type)
                if f.name in value
            }
            return field_type(**kwargs)

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            return field_type(value) if isinstance(value, str) else value

        if field_type is str and not isinstance(value, str):
            return str(value)

        return value


# Convenience singleton
_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> WeaverConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file

    Returns:
        Loaded WeaverConfig instance
    """
    return get_config_loader().load(path)
