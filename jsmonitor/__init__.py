"""Fansly main JS change monitor."""

__version__ = "1.0.0"
