"""Configuration package for LinkReport."""

from .settings import AppConfig, load_config

__all__ = ['AppConfig', 'load_config']
