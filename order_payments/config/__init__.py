"""Configuration package for order payments."""
from .settings import InstallmentConfig, Settings, get_settings

__all__ = ["InstallmentConfig", "Settings", "get_settings"]
