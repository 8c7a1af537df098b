"""Configuration module -- exports Settings."""

from studyrag.config.settings import Settings

__all__ = ["Settings"]
