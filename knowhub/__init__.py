"""Knowhub - people and expertise knowledge engine."""

__version__ = "0.1.0"
