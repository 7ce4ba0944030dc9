import pytest
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gitfolio.domain.models.project import AggregateStats, LanguageStat
from gitfolio.infrastructure.cli.display import ConsoleDisplay

from tests.factories import make_project


@pytest.fixture
def console():
    """A recording Console wide enough to keep table rows on one line."""
    return Console(record=True, width=200, force_terminal=False)


@pytest.fixture
def console_display(console: Console):
    """Fixture to create a ConsoleDisplay instance around a recording console."""
    return ConsoleDisplay(console=console)


def test_display_error_uses_red_panel(mocker):
    mock_console = mocker.MagicMock()
    ConsoleDisplay(console=mock_console).display_error("Something went wrong")
    mock_console.print.assert_called_once()
    (panel,), _ = mock_console.print.call_args
    assert isinstance(panel, Panel)
    assert panel.border_style == "red"
    assert "Error" in panel.title


def test_display_info_and_warning(console_display: ConsoleDisplay, console: Console):
    console_display.display_info("Cache cleared.")
    console_display.display_warning("Careful")
    text = console.export_text()
    assert "Cache cleared." in text
    assert "Careful" in text


def test_display_projects_renders_rows(console_display: ConsoleDisplay, console: Console):
    projects = [
        make_project("cache-lib", id=1, stargazers_count=42, language="Python", size=2048),
        make_project("old-fork", id=2, fork=True, archived=True, language=None),
    ]
    console_display.display_projects(projects, title="Your repositories")
    text = console.export_text()
    assert "Your repositories (2)" in text
    assert "cache-lib" in text
    assert "42" in text
    assert "2.0 MB" in text
    assert "fork, archived" in text


def test_display_projects_empty(console_display: ConsoleDisplay, console: Console):
    console_display.display_projects([])
    assert "No repositories matched." in console.export_text()


def test_display_project_details(console_display: ConsoleDisplay, console: Console):
    console_display.display_project(make_project(topics=["cli", "github"]))
    text = console.export_text()
    assert "octocat/Hello-World" in text
    assert "cli, github" in text
    assert "MIT" in text


def test_display_stats(console_display: ConsoleDisplay, console: Console):
    stats = AggregateStats(
        total_repos=2, public_repos=1, private_repos=1, forked_repos=1, original_repos=1, archived_repos=0,
        total_stars=15, total_forks=3, total_watchers=4, total_size=100, recently_active=1,
        languages={"Go": LanguageStat(count=2, bytes=100)}, top_language="Go", average_stars=8,
    )
    console_display.display_stats(stats)
    text = console.export_text()
    assert "Total stars" in text
    assert "15" in text
    assert "Go" in text


def test_display_languages_shows_share(console_display: ConsoleDisplay, console: Console):
    console_display.display_languages("octocat/hello", {"Python": 750, "Shell": 250})
    text = console.export_text()
    assert "75.0%" in text
    assert "25.0%" in text


def test_display_rate_limit(mocker):
    mock_console = mocker.MagicMock()
    display = ConsoleDisplay(console=mock_console)
    info = {"limit": 5000, "remaining": 0, "reset": 1717243200, "used": 5000}
    display.display_rate_limit({"core": info, "search": {"limit": 30, "remaining": 30, "reset": 1717243200, "used": 0}})
    (table,), _ = mock_console.print.call_args
    assert isinstance(table, Table)
    assert table.row_count == 2
