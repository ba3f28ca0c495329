"""Locate the most recently worked-on copy among scattered repository backups."""

__version__ = "0.1.0"
