"""Bagr services."""
