import asyncio
from typing import List

import httpx
import pytest

from gitfolio.domain.models.errors import ApiError, ErrorKind, RequestCancelledError
from gitfolio.infrastructure.resilience.api_retry import ApiRetryService

ENDPOINT = "/user/repos"


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedSend:
    """Returns (or raises) the scripted outcomes in order, repeating the last one."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> httpx.Response:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ok(payload=None) -> httpx.Response:
    return httpx.Response(200, json=payload if payload is not None else {"ok": True})


def failure(status: int, message: str = "boom", headers=None) -> httpx.Response:
    return httpx.Response(status, json={"message": message}, headers=headers)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def retry_service(sleep: RecordingSleep):
    return ApiRetryService(
        max_retries=3, base_delay_s=1.0, max_jitter_s=1.0,
        sleep=sleep, clock=lambda: 1_000.0, jitter=lambda low, high: 0.5,
    )


@pytest.mark.asyncio
async def test_success_returns_parsed_body(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(ok([{"id": 1}]))
    assert await retry_service.execute_with_retry(send, ENDPOINT) == [{"id": 1}]
    assert send.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_no_content_returns_none(retry_service: ApiRetryService):
    send = ScriptedSend(httpx.Response(204))
    assert await retry_service.execute_with_retry(send, ENDPOINT) is None


@pytest.mark.asyncio
async def test_retryable_failure_makes_max_retries_plus_one_attempts(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(500))
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 4
    assert exc_info.value.kind is ErrorKind.SERVER_ERROR
    assert sleep.delays == [1.5, 2.5, 4.5]


@pytest.mark.asyncio
async def test_not_found_short_circuits(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(404, "Not Found"))
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 1
    assert sleep.delays == []
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.original_message == "Not Found"


@pytest.mark.asyncio
async def test_forbidden_rate_limit_is_not_retried(retry_service: ApiRetryService):
    send = ScriptedSend(failure(403, "API rate limit exceeded"))
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 1
    assert exc_info.value.kind is ErrorKind.RATE_LIMITED


@pytest.mark.asyncio
async def test_recovers_after_transient_failures(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(502), failure(503), ok({"login": "octocat"}))
    assert await retry_service.execute_with_retry(send, ENDPOINT) == {"login": "octocat"}
    assert send.calls == 3
    assert sleep.delays == [1.5, 2.5]


@pytest.mark.asyncio
async def test_retry_after_header_sets_the_wait(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(429, headers={"Retry-After": "7"}), ok())
    await retry_service.execute_with_retry(send, ENDPOINT)
    assert sleep.delays == [7.0]


@pytest.mark.asyncio
async def test_rate_limit_reset_in_near_future_waits_until_reset(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(429, headers={"X-RateLimit-Reset": "1030"}), ok())
    await retry_service.execute_with_retry(send, ENDPOINT)
    assert sleep.delays == [30.0]


@pytest.mark.asyncio
async def test_rate_limit_reset_too_far_away_aborts(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(429, headers={"X-RateLimit-Reset": "1060"}), ok())
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 1
    assert sleep.delays == []
    assert exc_info.value.kind is ErrorKind.RATE_LIMITED


@pytest.mark.asyncio
async def test_rate_limit_reset_in_the_past_falls_back_to_backoff(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(429, headers={"X-RateLimit-Reset": "900"}), ok())
    await retry_service.execute_with_retry(send, ENDPOINT)
    assert sleep.delays == [1.5]


@pytest.mark.asyncio
async def test_rate_limited_without_headers_uses_backoff(retry_service: ApiRetryService, sleep: RecordingSleep):
    send = ScriptedSend(failure(429))
    with pytest.raises(ApiError):
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 4
    assert len(sleep.delays) == 3


@pytest.mark.asyncio
async def test_network_errors_are_retried_then_classified(retry_service: ApiRetryService):
    request = httpx.Request("GET", "https://api.github.com/user/repos")
    send = ScriptedSend(httpx.ConnectError("connection refused", request=request))
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 4
    assert exc_info.value.kind is ErrorKind.NETWORK_ERROR
    assert exc_info.value.status == 0
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json_raises_unknown_error(retry_service: ApiRetryService):
    send = ScriptedSend(httpx.Response(200, content=b"<html>"))
    with pytest.raises(ApiError) as exc_info:
        await retry_service.execute_with_retry(send, ENDPOINT)
    assert exc_info.value.kind is ErrorKind.UNKNOWN
    assert send.calls == 1


@pytest.mark.asyncio
async def test_zero_retries_makes_single_attempt(sleep: RecordingSleep):
    service = ApiRetryService(max_retries=0, sleep=sleep)
    send = ScriptedSend(failure(500))
    with pytest.raises(ApiError):
        await service.execute_with_retry(send, ENDPOINT)
    assert send.calls == 1
    assert sleep.delays == []


def test_negative_max_retries_rejected():
    with pytest.raises(ValueError):
        ApiRetryService(max_retries=-1)


def test_backoff_without_jitter_is_monotonic(retry_service: ApiRetryService):
    delays = [retry_service.calculate_backoff_delay(n, with_jitter=False) for n in range(10)]
    assert delays[:4] == [1.0, 2.0, 4.0, 8.0]
    assert all(later >= earlier for earlier, later in zip(delays, delays[1:]))


def test_jitter_is_bounded():
    service = ApiRetryService(base_delay_s=1.0, max_jitter_s=1.0)
    for attempt in range(4):
        delay = service.calculate_backoff_delay(attempt)
        base = 2 ** attempt
        assert base <= delay <= base + 1.0


@pytest.mark.asyncio
async def test_cancel_event_set_before_start_raises():
    service = ApiRetryService()
    cancel = asyncio.Event()
    cancel.set()
    send = ScriptedSend(ok())
    with pytest.raises(RequestCancelledError):
        await service.execute_with_retry(send, ENDPOINT, cancel_event=cancel)
    assert send.calls == 0


@pytest.mark.asyncio
async def test_cancel_event_interrupts_backoff_wait():
    service = ApiRetryService(max_retries=3, base_delay_s=10.0, max_jitter_s=0.0)
    cancel = asyncio.Event()
    send = ScriptedSend(failure(500))

    async def cancel_soon():
        await asyncio.sleep(0.01)
        cancel.set()

    canceller = asyncio.create_task(cancel_soon())
    with pytest.raises(RequestCancelledError):
        await asyncio.wait_for(service.execute_with_retry(send, ENDPOINT, cancel_event=cancel), timeout=5)
    await canceller
    assert send.calls == 1


@pytest.mark.asyncio
async def test_unset_cancel_event_lets_backoff_elapse():
    service = ApiRetryService(max_retries=1, base_delay_s=0.01, max_jitter_s=0.0)
    send = ScriptedSend(failure(500), ok({"done": True}))
    result = await service.execute_with_retry(send, ENDPOINT, cancel_event=asyncio.Event())
    assert result == {"done": True}
    assert send.calls == 2
