"""Tests for WeaverApplication wiring."""

import json
from io import StringIO
from pathlib import Path

import pytest

from staticweave import WeaverApplication, __version__
from staticweave.config import EngineConfig, WeaverConfig
from staticweave.errors import ErrorCategory, ErrorTemplate, TemplateError
from staticweave.telemetry import get_telemetry
from staticweave.types import MissingPolicy


@pytest.fixture
def config_path(tmp_path: Path, templates_dir: Path) -> Path:
    """Config file pointing at the template directory."""
    path = tmp_path / "staticweave.yaml"
    path.write_text(
        f"""
engine:
  base_path: {templates_dir}
  ttl_seconds: 45
  templates:
    footer: "<footer>{{{{year}}}}</footer>"
cache:
  capacity: 10
logging:
  level: INFO
  format: json
""",
        encoding="utf-8",
    )
    return path


class TestWeaverApplication:
    """Test WeaverApplication."""

    def test_version(self) -> None:
        assert __version__ == "0.1.0"

    def test_renders_with_configured_engine(self, config_path: Path) -> None:
        app = WeaverApplication(config_path, log_output=StringIO())

        assert app.engine.ttl == 45.0
        assert app.engine.cache.capacity == 10
        assert app.render_page({"title": "T", "heading": "H"}, "index") == (
            "<title>T</title><h1>H</h1>"
        )
        assert app.render_page({"year": 2024}, "footer") == "<footer>2024</footer>"
        app.shutdown()

    def test_logs_startup(self, config_path: Path) -> None:
        output = StringIO()
        WeaverApplication(config_path, log_output=output)

        records = [json.loads(line) for line in output.getvalue().strip().splitlines()]
        startup = next(r for r in records if r["message"] == "StaticWeave initialized")
        assert startup["ttl_seconds"] == 45.0
        assert startup["config_path"] == str(config_path)

    def test_engine_raises_through_application_registry(self, config_path: Path) -> None:
        app = WeaverApplication(config_path, log_output=StringIO())
        app.error_registry.register(
            ErrorTemplate(
                code="TEMPLATE_NOT_FOUND",
                category=ErrorCategory.NOT_FOUND,
                message_template="No page named {template_name}",
            )
        )

        with pytest.raises(TemplateError) as exc_info:
            app.render_page({}, "missing")
        assert exc_info.value.message == "No page named missing"

    def test_telemetry_disabled_by_default(self, config_path: Path) -> None:
        WeaverApplication(config_path, log_output=StringIO())
        telemetry = get_telemetry()
        assert telemetry is not None
        assert telemetry["metrics"] is None

    def test_defaults_without_config_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("STATICWEAVE_CONFIG_PATH", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        app = WeaverApplication(log_output=StringIO())

        assert app.engine.base_path == Path("templates")
        assert app.engine.missing is MissingPolicy.KEEP
        with pytest.raises(TemplateError):
            app.render_page({}, "index")

    def test_explicit_config(self, templates_dir: Path) -> None:
        config = WeaverConfig(
            engine=EngineConfig(base_path=str(templates_dir), missing=MissingPolicy.EMPTY)
        )
        app = WeaverApplication(config=config, log_output=StringIO())

        assert app.render_page({"title": "T"}, "index") == "<title>T</title><h1></h1>"

    def test_reload(self, config_path: Path, templates_dir: Path) -> None:
        app = WeaverApplication(config_path, log_output=StringIO())
        config_path.write_text(
            f"engine:\n  base_path: {templates_dir}\n  ttl_seconds: 5\n", encoding="utf-8"
        )

        app.reload()

        assert app.engine.ttl == 5.0
        with pytest.raises(TemplateError):
            app.render_page({}, "footer")
