"""Kingshot Governor Profile verification bot."""

__version__ = "1.0.0"
