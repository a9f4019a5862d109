"""Utility modules for themesongs."""
