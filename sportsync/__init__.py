"""Freshness-gated sports data synchronization."""

__version__ = "1.0.0"
