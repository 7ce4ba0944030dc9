"""Domain Event definitions.

Represents significant occurrences during API access (calls, retries,
deferrals, cache hits). They are logged at debug level.
"""
