"""Bosun: boat-monitoring hub route engine (water-only routing over polygon datasets)."""

__version__ = "1.0.0"
