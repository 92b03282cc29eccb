"""Reproducible git checkouts for content-addressed stores."""

__version__ = "0.3.0"
