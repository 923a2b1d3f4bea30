"""Shared handler utilities: observability, errors and dependency wiring."""
