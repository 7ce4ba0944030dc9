import pytest
from typer.testing import CliRunner

from gitfolio.infrastructure.config import settings
from tests.factories import make_project, make_raw_repo


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def raw_repo():
    """Factory fixture building raw repository records."""
    return make_raw_repo


@pytest.fixture
def project():
    """Factory fixture building transformed projects."""
    return make_project


@pytest.fixture(autouse=True)
def isolate_configuration(monkeypatch):
    """Keeps each test independent of the developer's environment and config files."""
    for name in ("GITHUB_TOKEN", "GITFOLIO_GITHUB_TOKEN", "GITHUB_API_URL", "GITFOLIO_GITHUB_API_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings, "_config", {})
    settings.clear_test_config()
    yield
    settings.clear_test_config()
