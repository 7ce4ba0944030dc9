"""Domain Events related to API calls and resilience.

Examples include events for when calls are deferred by rate limits, retried,
fail, or succeed.
"""

from dataclasses import dataclass, field
import time
from typing import Any, Optional

@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass

# --- Specific API Events ---

@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an HTTP attempt is about to be made."""
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call succeeds."""
    endpoint: str
    latency_ms: float
    status_code: int = 200
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively (after retries)."""
    endpoint: str
    error_type: str
    error_message: str
    status_code: Optional[int] = None
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)

@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when an API call waits on rate-limit headers."""
    endpoint: str
    wait_time_seconds: float
    source: str = "Retry-After"  # or 'X-RateLimit-Reset'
    timestamp: float = field(default_factory=time.time)

@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed API call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    reason: Optional[Any] = None
    timestamp: float = field(default_factory=time.time)

@dataclass
class CacheHit(DomainEvent):
    """Event triggered when a request is served from the cache."""
    endpoint: str
    cache_key: str
    timestamp: float = field(default_factory=time.time)
