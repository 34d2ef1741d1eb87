"""Top 10 ranking normalization, unification and enrichment."""

__version__ = "1.0.0"
