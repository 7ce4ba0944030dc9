"""Caching Service Implementation.

Provides the in-memory TTL implementation of the CacheService interface used
to avoid redundant GitHub API calls.
Bounded Context: Cache Management
"""
