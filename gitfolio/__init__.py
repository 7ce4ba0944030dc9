"""gitfolio: a resilient GitHub REST client with project analytics."""

__version__ = "0.1.0"
