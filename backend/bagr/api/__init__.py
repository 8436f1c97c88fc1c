"""Bagr HTTP routes."""
