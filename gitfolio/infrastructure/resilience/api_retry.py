"""Service for executing GitHub API calls with automatic retries.

Implements exponential backoff with jitter for transient errors (5xx, network
failures) and honors GitHub's rate-limit headers on 429 responses. Failures
that retrying cannot fix (401/403/404/422) are raised on first occurrence.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from gitfolio.domain.events.api_events import (
    ApiCallInitiated, ApiCallSucceeded, ApiCallFailed,
    ApiCallDeferred, RetryScheduled, DomainEvent,
)
from gitfolio.domain.models.errors import ApiError, ErrorKind, RequestCancelledError
from gitfolio.infrastructure.resilience.error_classifier import (
    NETWORK_ERROR_STATUS, classify_error,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0
DEFAULT_MAX_JITTER_SECONDS = 1.0
DEFAULT_MAX_RATE_LIMIT_WAIT_SECONDS = 60.0

SendRequest = Callable[[], Awaitable[httpx.Response]]


def _parse_header_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        logger.debug(f"Ignoring non-integer rate-limit header value: {value!r}")
        return None


def _error_body(response: httpx.Response) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def dispatch_event(event: DomainEvent) -> None:
    logger.debug(f"EVENT: {event}")


class ApiRetryService:
    """Runs one logical request, retrying retryable failures with backoff."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        base_delay_s: float = DEFAULT_BASE_DELAY_SECONDS,
        max_jitter_s: float = DEFAULT_MAX_JITTER_SECONDS,
        max_rate_limit_wait_s: float = DEFAULT_MAX_RATE_LIMIT_WAIT_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
        jitter: Callable[[float, float], float] = random.uniform,
    ):
        """Initializes the ApiRetryService.

        Args:
            max_retries: Retries after the first attempt (total attempts = max_retries + 1).
            base_delay_s: Delay before the first retry, doubled for each further retry.
            max_jitter_s: Upper bound of the random delay added to each backoff.
            max_rate_limit_wait_s: Longest X-RateLimit-Reset wait honored before giving up.
            sleep: Coroutine used to wait between attempts.
            clock: Returns current epoch seconds (compared with X-RateLimit-Reset).
            jitter: Returns a random float in [a, b].
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay_s = base_delay_s
        self.max_jitter_s = max_jitter_s
        self.max_rate_limit_wait_s = max_rate_limit_wait_s
        self._sleep = sleep
        self._clock = clock
        self._jitter = jitter

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"base_delay={base_delay_s}s, max_jitter={max_jitter_s}s, "
            f"max_rate_limit_wait={max_rate_limit_wait_s}s"
        )

    def calculate_backoff_delay(self, attempt: int, with_jitter: bool = True) -> float:
        """Delay before retrying after 0-indexed `attempt`: base * 2**attempt + jitter."""
        delay = self.base_delay_s * (2 ** attempt)
        if with_jitter and self.max_jitter_s > 0:
            delay += self._jitter(0.0, self.max_jitter_s)
        return delay

    async def _wait(self, delay: float, endpoint: str, cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is None:
            await self._sleep(delay)
            return
        if cancel_event.is_set():
            raise RequestCancelledError(endpoint)
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise RequestCancelledError(endpoint)

    def _rate_limit_wait(self, response: httpx.Response, error: ApiError, endpoint: str) -> Optional[float]:
        """Returns seconds to wait from rate-limit headers, or None to fall back to backoff.

        Raises the classified error when X-RateLimit-Reset is too far away.
        """
        retry_after = _parse_header_int(response.headers.get("Retry-After"))
        if retry_after is not None:
            dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=retry_after, source="Retry-After"))
            return float(max(0, retry_after))

        reset_at = _parse_header_int(response.headers.get("X-RateLimit-Reset"))
        if reset_at is None:
            return None
        wait = reset_at - self._clock()
        if wait >= self.max_rate_limit_wait_s:
            logger.warning(
                f"Rate limit for {endpoint} resets in {wait:.0f}s "
                f"(limit {self.max_rate_limit_wait_s:.0f}s). Giving up."
            )
            raise error
        if wait > 0:
            dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=wait, source="X-RateLimit-Reset"))
            return wait
        return None

    async def execute_with_retry(
        self,
        send: SendRequest,
        endpoint: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Executes `send` until it yields a successful response or retries run out.

        Args:
            send: Coroutine factory performing a single HTTP attempt.
            endpoint: Endpoint name used for logging and errors.
            cancel_event: Optional event; once set, the request stops at the
                next attempt or sleep point.

        Returns:
            The parsed JSON body of the successful response (None for 204).

        Raises:
            ApiError: Classified failure with a user-facing message.
            RequestCancelledError: If `cancel_event` was set.
        """
        for attempt in range(self.max_retries + 1):
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelledError(endpoint)
            has_retries_left = attempt < self.max_retries

            dispatch_event(ApiCallInitiated(endpoint=endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                response = await send()
            except httpx.RequestError as e:
                error = classify_error(NETWORK_ERROR_STATUS, reason=f"Network error: {e}")
                if has_retries_left:
                    delay = self.calculate_backoff_delay(attempt)
                    logger.warning(
                        f"Network error calling {endpoint} on attempt {attempt + 1}/{self.max_retries + 1}: "
                        f"{type(e).__name__}. Waiting {delay:.2f}s..."
                    )
                    dispatch_event(RetryScheduled(endpoint=endpoint, attempt_number=attempt + 1, delay_seconds=delay, reason=type(e).__name__))
                    await self._wait(delay, endpoint, cancel_event)
                    continue
                self._fail(endpoint, error, attempt + 1)
                raise error from e

            if response.is_success:
                latency_ms = (time.perf_counter() - start_time) * 1000
                dispatch_event(ApiCallSucceeded(endpoint=endpoint, latency_ms=latency_ms, status_code=response.status_code, attempts=attempt + 1))
                return self._parse_body(response, endpoint)

            error = classify_error(response.status_code, _error_body(response), response.reason_phrase)

            if response.status_code == 429:
                try:
                    wait = self._rate_limit_wait(response, error, endpoint)
                except ApiError:
                    self._fail(endpoint, error, attempt + 1)
                    raise
                if wait is not None and has_retries_left:
                    logger.warning(f"Rate limited calling {endpoint}. Waiting {wait:.2f}s before retrying...")
                    await self._wait(wait, endpoint, cancel_event)
                    continue

            if error.retryable and has_retries_left:
                delay = self.calculate_backoff_delay(attempt)
                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {attempt + 1}/{self.max_retries + 1}: "
                    f"HTTP {error.status}. Waiting {delay:.2f}s..."
                )
                dispatch_event(RetryScheduled(endpoint=endpoint, attempt_number=attempt + 1, delay_seconds=delay, reason=error.status))
                await self._wait(delay, endpoint, cancel_event)
                continue

            self._fail(endpoint, error, attempt + 1)
            raise error

        # The loop either returns or raises on its final attempt.
        raise AssertionError("unreachable")

    def _parse_body(self, response: httpx.Response, endpoint: str) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                kind=ErrorKind.UNKNOWN,
                status=response.status_code,
                message="GitHub returned a response that could not be parsed.",
                retryable=False,
                original_message=f"Invalid JSON from {endpoint}: {e}",
            ) from e

    def _fail(self, endpoint: str, error: ApiError, attempts: int) -> None:
        if error.retryable:
            logger.error(f"Max retries ({self.max_retries}) reached for {endpoint}. Last error: {error.original_message}")
        else:
            logger.error(f"Non-retryable error calling {endpoint} on attempt {attempts}: HTTP {error.status} {error.original_message}")
        dispatch_event(ApiCallFailed(
            endpoint=endpoint, error_type=error.kind.name, error_message=error.message,
            status_code=error.status, attempts=attempts,
        ))
