"""Harvest SPOT satellite messenger feed fixes into an append-only line stream."""

__version__ = "0.1.0"
