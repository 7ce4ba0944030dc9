"""
Core service exposing the GitHub endpoints the application consumes.

Each method names its cache key and TTL class; the request executor does the
caching, retrying and error classification. Listing methods return raw
records, while the `*_projects` helpers run them through the validation and
transformation pipeline.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from gitfolio.core.projects.aggregation import calculate_total_stats
from gitfolio.core.projects.query import RepositoryFilters, filter_repositories, sort_repositories
from gitfolio.core.projects.transformer import transform_repositories, transform_repository
from gitfolio.domain.models.common import (
    AccessToken, GitHubUser, LanguageBreakdown, RateLimitStatus, RawRepository, SearchResults,
)
from gitfolio.domain.models.errors import ApiError, ErrorKind, GitfolioError
from gitfolio.domain.models.project import AggregateStats, ConnectionStatus, Project
from gitfolio.infrastructure.cache.caching_service import build_cache_key
from gitfolio.infrastructure.config.settings import CacheTTLs
from gitfolio.infrastructure.github.request_executor import GitHubRequestExecutor

logger = logging.getLogger(__name__)

# Listing defaults mirror GitHub's most useful ordering for a portfolio
DEFAULT_REPO_TYPE = "owner"
DEFAULT_REPO_SORT = "updated"
DEFAULT_DIRECTION = "desc"
DEFAULT_REPOS_PER_PAGE = 100
DEFAULT_SEARCH_SORT = "stars"
DEFAULT_SEARCH_PER_PAGE = 30


class GitHubService:
    """Orchestrates GitHub API access for the application."""

    def __init__(self, executor: GitHubRequestExecutor, cache_ttls: Optional[CacheTTLs] = None):
        """Initializes the service.

        Args:
            executor: Request executor holding the cache, token and retry policy.
            cache_ttls: Freshness per data class (defaults: 5 min, user 10 min,
                languages 30 min, search 2 min).
        """
        self.executor = executor
        self.cache_ttls = cache_ttls or CacheTTLs()

    # --- Token & cache management ---

    def set_token(self, token: str) -> None:
        self.executor.set_token(token)
        logger.info("GitHub token updated.")

    def get_token(self) -> Optional[AccessToken]:
        return self.executor.token

    def remove_token(self) -> None:
        self.executor.remove_token()
        logger.info("GitHub token removed.")

    async def clear_cache(self) -> None:
        await self.executor.cache_service.clear()

    async def aclose(self) -> None:
        await self.executor.aclose()

    # --- Endpoints ---

    async def test_connection(self, cancel_event: Optional[asyncio.Event] = None) -> ConnectionStatus:
        """Checks that a token is configured and accepted by the API."""
        if not self.executor.token:
            return ConnectionStatus(success=False, error="No GitHub token provided")
        try:
            user = await self.get_current_user(cancel_event=cancel_event)
        except GitfolioError as e:
            logger.info(f"Connection test failed: {e}")
            return ConnectionStatus(success=False, error=str(e) or "Failed to connect to GitHub API")
        return ConnectionStatus(success=True, user=user)

    async def get_current_user(self, cancel_event: Optional[asyncio.Event] = None) -> GitHubUser:
        return await self.executor.request(
            "/user",
            cache_key=build_cache_key("user", "current"),
            ttl=self.cache_ttls.user,
            cancel_event=cancel_event,
        )

    async def get_user_repositories(
        self,
        username: Optional[str] = None,
        repo_type: str = DEFAULT_REPO_TYPE,
        sort: str = DEFAULT_REPO_SORT,
        direction: str = DEFAULT_DIRECTION,
        per_page: int = DEFAULT_REPOS_PER_PAGE,
        page: int = 1,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[RawRepository]:
        """Lists repositories of `username`, or of the authenticated user when None."""
        endpoint = f"/users/{username}/repos" if username else "/user/repos"
        params = {"type": repo_type, "sort": sort, "direction": direction, "per_page": per_page, "page": page}
        return await self.executor.request(
            endpoint,
            params=params,
            cache_key=build_cache_key("repos", username or "current", params),
            ttl=self.cache_ttls.default,
            cancel_event=cancel_event,
        )

    async def get_repository(self, owner: str, repo: str, cancel_event: Optional[asyncio.Event] = None) -> RawRepository:
        return await self.executor.request(
            f"/repos/{owner}/{repo}",
            cache_key=build_cache_key("repo", f"{owner}/{repo}"),
            ttl=self.cache_ttls.default,
            cancel_event=cancel_event,
        )

    async def get_repository_languages(self, owner: str, repo: str, cancel_event: Optional[asyncio.Event] = None) -> LanguageBreakdown:
        return await self.executor.request(
            f"/repos/{owner}/{repo}/languages",
            cache_key=build_cache_key("languages", f"{owner}/{repo}"),
            ttl=self.cache_ttls.languages,
            cancel_event=cancel_event,
        )

    async def get_rate_limit(self, cancel_event: Optional[asyncio.Event] = None) -> RateLimitStatus:
        """Current quota; always fetched fresh."""
        payload: Dict[str, Any] = await self.executor.request("/rate_limit", cancel_event=cancel_event)
        resources = payload.get("resources") if isinstance(payload, dict) else None
        if not isinstance(resources, dict) or "core" not in resources or "search" not in resources:
            raise ApiError(
                kind=ErrorKind.UNKNOWN,
                status=200,
                message="GitHub returned a response that could not be parsed.",
                retryable=False,
                original_message=f"Unexpected rate limit payload: {payload!r}",
            )
        return {"core": resources["core"], "search": resources["search"]}

    async def search_repositories(
        self,
        query: str,
        sort: str = DEFAULT_SEARCH_SORT,
        order: str = DEFAULT_DIRECTION,
        per_page: int = DEFAULT_SEARCH_PER_PAGE,
        page: int = 1,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SearchResults:
        params = {"q": query, "sort": sort, "order": order, "per_page": per_page, "page": page}
        return await self.executor.request(
            "/search/repositories",
            params=params,
            cache_key=build_cache_key("search", "repositories", params),
            ttl=self.cache_ttls.search,
            cancel_event=cancel_event,
        )

    # --- Pipeline helpers ---

    async def list_projects(
        self,
        username: Optional[str] = None,
        filters: Optional[RepositoryFilters] = None,
        sort_by: Optional[str] = None,
        direction: str = DEFAULT_DIRECTION,
        per_page: int = DEFAULT_REPOS_PER_PAGE,
        page: int = 1,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Project]:
        """Fetches, validates and transforms a listing, then filters and sorts it locally.

        Raises:
            InvalidRecordError: If any record in the listing is malformed.
        """
        raws = await self.get_user_repositories(username, per_page=per_page, page=page, cancel_event=cancel_event)
        projects = transform_repositories(raws)
        if filters is not None:
            projects = filter_repositories(projects, filters)
        if sort_by is not None:
            projects = sort_repositories(projects, sort_by, direction)
        return projects

    async def get_project(self, owner: str, repo: str, cancel_event: Optional[asyncio.Event] = None) -> Project:
        return transform_repository(await self.get_repository(owner, repo, cancel_event=cancel_event))

    async def search_projects(self, query: str, cancel_event: Optional[asyncio.Event] = None, **options: Any) -> List[Project]:
        results = await self.search_repositories(query, cancel_event=cancel_event, **options)
        return transform_repositories(results.get("items", []))

    async def get_project_stats(self, username: Optional[str] = None, cancel_event: Optional[asyncio.Event] = None) -> AggregateStats:
        projects = await self.list_projects(username, cancel_event=cancel_event)
        return calculate_total_stats(projects)
