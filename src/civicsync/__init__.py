"""Offline-first civic report submission and sync."""

__version__ = "0.1.0"
