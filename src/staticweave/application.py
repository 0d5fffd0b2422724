"""StaticWeave Application - wires configuration, logging, telemetry and the engine."""

import sys
from pathlib import Path
from typing import Any, TextIO

from staticweave.config import ConfigLoader, WeaverConfig
from staticweave.errors import ErrorFactory, ErrorRegistry
from staticweave.logging import WeaverLogger, configure_logging, get_logger
from staticweave.telemetry import setup_telemetry
from staticweave.template import Context, Engine, PageOptions


class WeaverApplication:
    """
    StaticWeave application orchestrator.

    Initialization sequence:

    1. Config loading
    2. Logger setup
    3. Telemetry setup
    4. Error registry
    5. Template engine
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        log_output: TextIO | None = None,
        config: WeaverConfig | None = None,
    ):
        """Initialize application.

        Args:
            config_path: Path to config file (optional)
            log_output: Output stream for logs (default: sys.stderr)
            config: Already-loaded configuration, skips the file lookup
        """
        self._config_path = config_path
        self._log_output = log_output or sys.stderr

        # 1. Config Loader
        self.config_loader = ConfigLoader()
        self.config = config if config is not None else self.config_loader.load(config_path)

        # 2. Logger
        configure_logging(
            level=self.config.logging.level,
            log_format=self.config.logging.format,
            output=self._log_output,
            truncate_at=self.config.logging.truncate_at,
        )
        self.logger: WeaverLogger = get_logger("application")

        # 3. Telemetry Setup
        self.telemetry = setup_telemetry(self.config.telemetry)

        # 4. Error Registry & Factory
        self.error_registry = ErrorRegistry()
        self.error_factory = ErrorFactory(self.error_registry)

        # 5. Template Engine
        self.engine = Engine.from_config(
            self.config.engine,
            remote=self.config.remote,
            cache=self.config.cache,
            error_factory=self.error_factory,
        )

        self.logger.info(
            "StaticWeave initialized",
            base_path=str(self.engine.base_path),
            ttl_seconds=self.engine.ttl,
            config_path=str(self.config_loader.config_path or ""),
        )

    def render_page(
        self,
        context: Context | dict[str, Any],
        name: str,
        options: PageOptions | None = None,
    ) -> str:
        """Render a page with the configured engine.

        Args:
            context: Placeholder values
            name: Template name
            options: Optional page metadata

        Returns:
            Rendered page
        """
        return self.engine.render_page(context, name, options)

    def reload(self) -> None:
        """Reload configuration from disk and rebuild the engine."""
        self.config = self.config_loader.reload()
        self.engine.close()
        self.engine = Engine.from_config(
            self.config.engine,
            remote=self.config.remote,
            cache=self.config.cache,
            error_factory=self.error_factory,
        )
        self.logger.info("Configuration reloaded")

    def shutdown(self) -> None:
        """Release engine resources."""
        self.engine.close()
