"""Application services coordinating API access and the project pipeline."""
