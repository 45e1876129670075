"""Configuration for provider request orchestration."""

from .settings import Settings

__all__ = ['Settings']
