"""Core configuration."""

from neriah.core.config import Config

__all__ = ["Config"]
