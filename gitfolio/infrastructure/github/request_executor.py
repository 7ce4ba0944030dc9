"""Executes GitHub REST requests through the cache and the retry service.

A request is one sequential unit of work: cache lookup, then (on a miss) the
network call with its retry loop, then the cache write. Concurrent requests
sharing a cache key are collapsed onto a single network call; each joined
caller still answers only to its own cancellation event.
"""

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from gitfolio.domain.events.api_events import CacheHit
from gitfolio.domain.interfaces.cache import CacheService
from gitfolio.domain.models.common import AccessToken, CacheKey
from gitfolio.domain.models.errors import RequestCancelledError
from gitfolio.infrastructure.resilience.api_retry import ApiRetryService, dispatch_event
from gitfolio.infrastructure.storage.token_store import TokenStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_USER_AGENT = "gitfolio"
DEFAULT_TIMEOUT_SECONDS = 20.0
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"


class GitHubRequestExecutor:
    """Builds authenticated requests and runs them with caching and retries."""

    def __init__(
        self,
        token_store: TokenStore,
        cache_service: CacheService,
        retry_service: ApiRetryService,
        token: Optional[str] = None,
        base_url: str = DEFAULT_API_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initializes the executor.

        Args:
            token_store: Persistent token storage; read once here unless `token` is given.
            cache_service: Shared response cache.
            retry_service: Retry/backoff policy for each network call.
            token: Explicit token taking precedence over the stored one (not persisted).
            base_url: API root, without trailing slash.
            user_agent: Value of the User-Agent header GitHub requires.
            timeout_s: Per-attempt timeout for the owned HTTP client.
            http_client: Optional pre-built client (e.g. with a mock transport).
        """
        self.token_store = token_store
        self.cache_service = cache_service
        self.retry_service = retry_service
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self._token: Optional[AccessToken] = AccessToken(token) if token else token_store.get()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._in_flight: Dict[CacheKey, asyncio.Future] = {}

    # --- Token management ---

    @property
    def token(self) -> Optional[AccessToken]:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = AccessToken(token)
        self.token_store.set(token)

    def remove_token(self) -> None:
        self._token = None
        self.token_store.remove()

    # --- Requests ---

    def build_headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers = {
            "Accept": GITHUB_ACCEPT_HEADER,
            "User-Agent": self.user_agent,
        }
        if extra:
            headers.update(extra)
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._http_client

    async def request(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        cache_key: Optional[CacheKey] = None,
        ttl: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Performs a GET against `endpoint`, serving and filling the cache when keyed.

        Args:
            endpoint: Path relative to the API root, e.g. '/user/repos'.
            params: Query parameters.
            cache_key: Cache slot for this logical request; None disables caching.
            ttl: Freshness of the stored response in seconds (cache default if None).
            cancel_event: Optional event that aborts the request at its next wait point.
            headers: Extra request headers.

        Returns:
            Parsed JSON body.

        Raises:
            ApiError: When the request fails definitively.
            RequestCancelledError: When `cancel_event` is set before completion.
        """
        if cache_key is None:
            return await self._fetch(endpoint, params, headers, cancel_event)

        while True:
            cached = await self.cache_service.get(cache_key)
            if cached is not None:
                dispatch_event(CacheHit(endpoint=endpoint, cache_key=cache_key))
                return cached

            pending = self._in_flight.get(cache_key)
            if pending is None:
                break
            logger.debug(f"Joining in-flight request for key: {cache_key}")
            await self._wait_for_shared(pending, endpoint, cancel_event)
            if pending.cancelled() or isinstance(pending.exception(), RequestCancelledError):
                # The leading caller gave up; this caller still wants the data.
                logger.debug(f"In-flight request for key {cache_key} was cancelled, fetching again")
                continue
            return pending.result()

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._in_flight[cache_key] = future
        try:
            result = await self._fetch(endpoint, params, headers, cancel_event)
            await self.cache_service.set(cache_key, result, ttl)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark as retrieved so an un-joined future does not log a warning.
            future.exception()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._in_flight.pop(cache_key, None)

    async def _wait_for_shared(
        self, pending: asyncio.Future, endpoint: str, cancel_event: Optional[asyncio.Event]
    ) -> None:
        """Waits for another caller's request to finish without adopting its cancellation.

        Raises:
            RequestCancelledError: If this caller's own `cancel_event` fires first.
        """
        if cancel_event is None:
            await asyncio.wait({pending})
            return
        if cancel_event.is_set():
            raise RequestCancelledError(endpoint)
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            await asyncio.wait({pending, cancelled}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancelled.cancel()
        if not pending.done():
            raise RequestCancelledError(endpoint)

    async def _fetch(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]],
        headers: Optional[Mapping[str, str]],
        cancel_event: Optional[asyncio.Event],
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        request_headers = self.build_headers(headers)
        query = dict(params) if params else None
        client = self._get_client()

        async def send() -> httpx.Response:
            return await client.get(url, params=query, headers=request_headers)

        logger.debug(f"GET {url} params={query}")
        return await self.retry_service.execute_with_retry(send, endpoint, cancel_event=cancel_event)

    async def aclose(self) -> None:
        """Releases the owned HTTP client; an injected client is left to its owner."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
