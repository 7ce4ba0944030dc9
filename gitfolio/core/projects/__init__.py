"""Project pipeline: validation, transformation, aggregation and queries.

Pure functions with no network or cache interaction.
"""
