"""Resilient multi-site product extraction engine."""

__version__ = "0.1.0"
