"""Configuration module for respkv."""

from .server_config import ServerConfig
from .settings import Settings, settings

__all__ = ["ServerConfig", "Settings", "settings"]
