"""Livecast - live comment broadcast backend."""

__version__ = "0.1.0"
