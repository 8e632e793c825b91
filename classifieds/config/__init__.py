"""Configuration package."""
from .settings import Settings, build_algorithm_config, get_settings

__all__ = ["Settings", "build_algorithm_config", "get_settings"]
