"""Basecamp API fetch helpers: OAuth, paginated JSON, and asset downloads."""

__version__ = "1.0.0"
