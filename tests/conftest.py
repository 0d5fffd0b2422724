"""
Pytest configuration and shared fixtures for StaticWeave tests.
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

# Add src and the project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from staticweave.logging import reset_loggers  # noqa: E402
from staticweave.telemetry import reset_telemetry  # noqa: E402
from tests.mocks import CountingFileLoader, FakeClock, FakeRemoteLoader  # noqa: E402

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Template directory with a few pages."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "index.html").write_text(
        "<title>{{title}}</title><h1>{{heading}}</h1>", encoding="utf-8"
    )
    (directory / "page.html").write_text(
        '<html lang="{{language}}"><title>{{title}}</title>'
        '<meta name="description" content="{{description}}"></html>',
        encoding="utf-8",
    )
    (directory / "plain.html").write_text("no placeholders here", encoding="utf-8")
    return directory


@pytest.fixture
def make_template(templates_dir: Path) -> Callable[[str, str], Path]:
    """Write ``<name>.html`` into the template directory."""

    def _make(name: str, body: str) -> Path:
        path = templates_dir / f"{name}.html"
        path.write_text(body, encoding="utf-8")
        return path

    return _make


# =============================================================================
# Fake Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock."""
    return FakeClock()


@pytest.fixture
def counting_loader() -> CountingFileLoader:
    """File loader recording how often each path is read."""
    return CountingFileLoader()


@pytest.fixture
def remote_loader() -> FakeRemoteLoader:
    """In-memory remote loader."""
    return FakeRemoteLoader()


# =============================================================================
# Global State
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None, None, None]:
    """Start every test without logging handlers or telemetry."""
    reset_loggers()
    reset_telemetry()
    yield
    reset_loggers()
    reset_telemetry()


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")
