"""Interface for presenting results to the user.

Defines the contract for displaying messages, projects, statistics and
quotas, allowing different UI implementations (console, JSON, tests).
"""

import abc
from typing import Any, Sequence

from gitfolio.domain.models.common import GitHubUser, LanguageBreakdown, RateLimitStatus
from gitfolio.domain.models.project import AggregateStats, Project

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        pass

    @abc.abstractmethod
    def display_user(self, user: GitHubUser) -> None:
        pass

    @abc.abstractmethod
    def display_projects(self, projects: Sequence[Project], title: str = "Repositories") -> None:
        """Displays a table of projects in the given order."""
        pass

    @abc.abstractmethod
    def display_project(self, project: Project) -> None:
        """Displays the details of one project."""
        pass

    @abc.abstractmethod
    def display_languages(self, full_name: str, languages: LanguageBreakdown) -> None:
        pass

    @abc.abstractmethod
    def display_stats(self, stats: AggregateStats, title: str = "Statistics") -> None:
        pass

    @abc.abstractmethod
    def display_rate_limit(self, status: RateLimitStatus) -> None:
        pass
