"""Cellboard: cell (small group) formation engine and service for a youth ministry roster."""

__version__ = "1.0.0"
