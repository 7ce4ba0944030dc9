"""GitHub REST access: authenticated, cached and retried requests.
Bounded Context: API Access
"""
