import logging
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.box import ROUNDED, HEAVY, SIMPLE
from rich.text import Text
from rich.table import Table

from gitfolio.core.projects.formatting import (
    format_relative_time, format_repository_size, get_activity_level,
)
from gitfolio.domain.interfaces.user_interface import UserInterface
from gitfolio.domain.models.common import GitHubUser, LanguageBreakdown, RateLimitInfo, RateLimitStatus
from gitfolio.domain.models.project import AggregateStats, Project

logger = logging.getLogger(__name__)

ACTIVITY_STYLES = {"high": "green", "medium": "yellow", "low": "dim"}


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_user(self, user: GitHubUser) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Field", style="bold cyan")
        table.add_column("Value", style="white")
        for label, key in (
            ("Login", "login"), ("Name", "name"), ("Company", "company"), ("Location", "location"),
            ("Bio", "bio"), ("Public repos", "public_repos"), ("Followers", "followers"),
            ("Following", "following"), ("Profile", "html_url"),
        ):
            value = user.get(key)
            if value not in (None, ""):
                table.add_row(label, str(value))
        self.console.print(table)

    def display_projects(self, projects: Sequence[Project], title: str = "Repositories") -> None:
        """Renders projects as a table with stars, forks, language and activity.

        Args:
            projects: Projects in display order.
            title: Table title.
        """
        if not projects:
            self.display_info("No repositories matched.")
            return

        now = datetime.now(timezone.utc)
        table = Table(title=f"{title} ({len(projects)})", show_header=True, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Name", style="bold white", no_wrap=True)
        table.add_column("Language", style="magenta")
        table.add_column("★", justify="right")
        table.add_column("Forks", justify="right")
        table.add_column("Size", justify="right")
        table.add_column("Updated", style="dim")
        table.add_column("Flags", style="yellow")

        for project in projects:
            flags = [
                label for label, enabled in (
                    ("private", project.is_private), ("fork", project.is_fork), ("archived", project.is_archived),
                ) if enabled
            ]
            activity = get_activity_level(project, now)
            table.add_row(
                project.name,
                project.language or "-",
                str(project.stars),
                str(project.forks),
                format_repository_size(project.size),
                Text(format_relative_time(project.updated_at, now), style=ACTIVITY_STYLES[activity]),
                ", ".join(flags),
            )
        self.console.print(table)

    def display_project(self, project: Project) -> None:
        table = Table(show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Field", style="bold cyan")
        table.add_column("Value", style="white")
        table.add_row("Repository", project.full_name)
        if project.description:
            table.add_row("Description", project.description)
        table.add_row("Language", project.language or "-")
        table.add_row("Stars / Forks / Watchers", f"{project.stars} / {project.forks} / {project.watchers}")
        table.add_row("Size", format_repository_size(project.size))
        table.add_row("Updated", f"{format_relative_time(project.updated_at)} ({get_activity_level(project)} activity)")
        table.add_row("Created", project.created_at)
        if project.topics:
            table.add_row("Topics", ", ".join(project.topics))
        if project.license:
            table.add_row("License", project.license.spdx_id or project.license.name)
        table.add_row("Default branch", project.default_branch or "-")
        table.add_row("URL", project.url)
        self.console.print(table)

    def display_languages(self, full_name: str, languages: LanguageBreakdown) -> None:
        total = sum(languages.values())
        table = Table(title=f"Languages in {full_name}", box=SIMPLE, border_style="cyan", padding=(0, 1))
        table.add_column("Language", style="magenta")
        table.add_column("Bytes", justify="right")
        table.add_column("Share", justify="right")
        for language, size in sorted(languages.items(), key=lambda item: item[1], reverse=True):
            share = f"{size / total * 100:.1f}%" if total else "-"
            table.add_row(language, str(size), share)
        self.console.print(table)

    def display_stats(self, stats: AggregateStats, title: str = "Statistics") -> None:
        summary = Table(title=title, show_header=False, box=ROUNDED, border_style="cyan", padding=(0, 1))
        summary.add_column("Metric", style="bold cyan")
        summary.add_column("Value", justify="right")
        for label, value in (
            ("Repositories", stats.total_repos),
            ("Public / Private", f"{stats.public_repos} / {stats.private_repos}"),
            ("Original / Forked", f"{stats.original_repos} / {stats.forked_repos}"),
            ("Archived", stats.archived_repos),
            ("Total stars", stats.total_stars),
            ("Average stars", stats.average_stars),
            ("Total forks", stats.total_forks),
            ("Total watchers", stats.total_watchers),
            ("Total size", format_repository_size(stats.total_size)),
            ("Active in last 30 days", stats.recently_active),
            ("Top language", stats.top_language or "-"),
        ):
            summary.add_row(label, str(value))
        self.console.print(summary)

        if stats.languages:
            languages = Table(title="Languages", box=SIMPLE, border_style="cyan", padding=(0, 1))
            languages.add_column("Language", style="magenta")
            languages.add_column("Repos", justify="right")
            languages.add_column("Size", justify="right")
            for language, stat in stats.languages.items():
                languages.add_row(language, str(stat.count), format_repository_size(stat.bytes))
            self.console.print(languages)

    def display_rate_limit(self, status: RateLimitStatus) -> None:
        table = Table(title="GitHub API rate limit", box=ROUNDED, border_style="cyan", padding=(0, 1))
        table.add_column("Resource", style="bold cyan")
        table.add_column("Used", justify="right")
        table.add_column("Remaining", justify="right")
        table.add_column("Limit", justify="right")
        table.add_column("Resets at")
        for resource, info in (("core", status["core"]), ("search", status["search"])):
            table.add_row(resource, *self._rate_limit_cells(info))
        self.console.print(table)

    @staticmethod
    def _rate_limit_cells(info: RateLimitInfo):
        reset_at = datetime.fromtimestamp(info["reset"]).strftime("%H:%M:%S")
        remaining_style = "red" if info["remaining"] == 0 else "green"
        return (
            str(info["used"]),
            Text(str(info["remaining"]), style=remaining_style),
            str(info["limit"]),
            reset_at,
        )
