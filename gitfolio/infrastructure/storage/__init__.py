"""Persistent key-value storage, used for the saved GitHub token."""
