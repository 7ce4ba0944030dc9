"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the GitHubService and renders the results through the UserInterface.
"""

import logging
from typing import Optional

from gitfolio.core.projects.query import RepositoryFilters
from gitfolio.core.services.github_service import GitHubService
from gitfolio.domain.interfaces.user_interface import UserInterface
from gitfolio.domain.models.errors import ApiError, GitfolioError

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to the GitHub service."""

    def __init__(self, github_service: GitHubService, ui: UserInterface):
        self.github_service = github_service
        self.ui = ui

    def _report(self, action: str, error: Exception) -> None:
        """Shows an expected failure as a friendly message and logs anything else in full."""
        if isinstance(error, ApiError):
            logger.info(f"{action} failed: {error!r}")
            self.ui.display_error(error.message)
        elif isinstance(error, (GitfolioError, ValueError)):
            logger.info(f"{action} failed: {error}")
            self.ui.display_error(str(error))
        else:
            logger.error(f"{action} failed: {error}", exc_info=True)
            self.ui.display_error(f"{action} failed: {error}")

    async def handle_user(self) -> None:
        logger.info("Handling 'user' command.")
        try:
            user = await self.github_service.get_current_user()
            self.ui.display_user(user)
        except Exception as e:
            self._report("Fetching user", e)
        finally:
            await self.github_service.aclose()

    async def handle_repos(
        self,
        username: Optional[str],
        filters: Optional[RepositoryFilters] = None,
        sort_by: Optional[str] = None,
        direction: str = "desc",
        page: int = 1,
        per_page: int = 100,
    ) -> None:
        """Handles the 'repos' command: list, filter and sort a user's repositories."""
        logger.info(f"Handling 'repos' command for {username or 'authenticated user'} (sort={sort_by}, direction={direction})")
        try:
            projects = await self.github_service.list_projects(
                username, filters=filters, sort_by=sort_by, direction=direction, per_page=per_page, page=page,
            )
            self.ui.display_projects(projects, title=f"Repositories of {username}" if username else "Your repositories")
        except Exception as e:
            self._report("Listing repositories", e)
        finally:
            await self.github_service.aclose()

    async def handle_repo(self, owner: str, name: str) -> None:
        logger.info(f"Handling 'repo' command for {owner}/{name}")
        try:
            project = await self.github_service.get_project(owner, name)
            self.ui.display_project(project)
        except Exception as e:
            self._report("Fetching repository", e)
        finally:
            await self.github_service.aclose()

    async def handle_languages(self, owner: str, name: str) -> None:
        logger.info(f"Handling 'languages' command for {owner}/{name}")
        try:
            languages = await self.github_service.get_repository_languages(owner, name)
            self.ui.display_languages(f"{owner}/{name}", languages)
        except Exception as e:
            self._report("Fetching languages", e)
        finally:
            await self.github_service.aclose()

    async def handle_stats(self, username: Optional[str]) -> None:
        logger.info(f"Handling 'stats' command for {username or 'authenticated user'}")
        try:
            stats = await self.github_service.get_project_stats(username)
            self.ui.display_stats(stats, title=f"Statistics for {username}" if username else "Your statistics")
        except Exception as e:
            self._report("Computing statistics", e)
        finally:
            await self.github_service.aclose()

    async def handle_search(self, query: str, sort: str = "stars", order: str = "desc", page: int = 1, per_page: int = 30) -> None:
        logger.info(f"Handling 'search' command: {query!r}")
        try:
            projects = await self.github_service.search_projects(query, sort=sort, order=order, page=page, per_page=per_page)
            self.ui.display_projects(projects, title=f"Search results for '{query}'")
        except Exception as e:
            self._report("Search", e)
        finally:
            await self.github_service.aclose()

    async def handle_rate_limit(self) -> None:
        logger.info("Handling 'rate-limit' command.")
        try:
            status = await self.github_service.get_rate_limit()
            self.ui.display_rate_limit(status)
        except Exception as e:
            self._report("Fetching rate limit", e)
        finally:
            await self.github_service.aclose()

    async def handle_test_connection(self) -> None:
        logger.info("Handling 'test-connection' command.")
        try:
            status = await self.github_service.test_connection()
            if status.success:
                login = status.user.get("login", "unknown") if status.user else "unknown"
                self.ui.display_info(f"Connected to GitHub as {login}.")
            else:
                self.ui.display_error(status.error or "Failed to connect to GitHub API")
        except Exception as e:
            self._report("Connection test", e)
        finally:
            await self.github_service.aclose()

    def handle_set_token(self, token: str) -> None:
        token = token.strip()
        if not token:
            self.ui.display_error("Token must not be empty.")
            return
        try:
            self.github_service.set_token(token)
            self.ui.display_info("GitHub token saved.")
        except Exception as e:
            self._report("Saving token", e)

    def handle_remove_token(self) -> None:
        try:
            self.github_service.remove_token()
            self.ui.display_info("GitHub token removed.")
        except Exception as e:
            self._report("Removing token", e)

    async def handle_clear_cache(self) -> None:
        """Handles the 'clear-cache' command."""
        logger.info("Handling 'clear-cache' command.")
        try:
            await self.github_service.clear_cache()
            self.ui.display_info("Cache cleared.")
        except Exception as e:
            logger.error(f"Error clearing cache: {e}", exc_info=True)
            self.ui.display_error(f"Failed to clear cache: {e}")
