"""API Resilience Implementations.

Contains the error classifier and the retry executor handling exponential
backoff with jitter and GitHub's rate-limit headers.
Bounded Context: API Resilience
"""
