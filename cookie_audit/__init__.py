"""Concurrent audit of institution-wide cookie scoping across web properties."""

__version__ = "1.0.0"
