"""Utility helpers: logging setup and output formatting."""
