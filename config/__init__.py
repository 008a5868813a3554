"""Configuration package for the mock interview service."""
from .routes import AppConfig, LlmRoute, load_config, load_routes, resolve_routes
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "load_routes",
    "resolve_routes",
    "Settings",
    "settings",
]
