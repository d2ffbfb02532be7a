"""Resilient action resolution for web automation against drifting pages."""

__version__ = "0.1.0"
