"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like cache keys,
tokens and rate-limit snapshots, ensuring consistency and type safety.
"""

from typing import NewType, Dict, Any, TypedDict

# === Core Value Objects ===

# Using NewType for semantic clarity, although they are strings at runtime.
AccessToken = NewType("AccessToken", str)      # GitHub personal access / OAuth token

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # Unique key for a cache entry

# === Raw API payloads ===
RawRepository = Dict[str, Any]   # Untrusted repository JSON, validated before use
GitHubUser = Dict[str, Any]      # /user payload, passed through untouched
LanguageBreakdown = Dict[str, int]  # language -> bytes, as returned by /languages

# --- Structured Data ---
class RateLimitInfo(TypedDict):
    """Snapshot of one rate-limit resource from /rate_limit."""
    limit: int
    remaining: int
    reset: int  # epoch seconds
    used: int

class RateLimitStatus(TypedDict):
    """Core and search quotas returned together."""
    core: RateLimitInfo
    search: RateLimitInfo

class SearchResults(TypedDict):
    """Shape of /search/repositories."""
    total_count: int
    items: list
