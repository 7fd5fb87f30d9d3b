"""
Pytest configuration and shared fixtures for PawnKit tests.
"""

import pytest

from pawnkit.core.directory import CACHE_DIR_ENV
from pawnkit.core.platform import clear_platform_cache


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (requires --integration)",
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep tests independent of the user's cache settings and host."""
    monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture
def cache_dir(tmp_path):
    """Empty cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def install_dir(tmp_path):
    """Install destination (not yet created)."""
    return tmp_path / "install"
