"""Bagr shared utilities: logging, metrics and request ids."""
