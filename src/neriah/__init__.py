"""Neriah: action items extracted from your inbox."""

__version__ = "0.1.0"
