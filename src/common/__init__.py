# Common utilities and shared modules
"""
Shared components used by every stage of the build:
- Site configuration
- Logging configuration
- Exception hierarchy
"""

from .config import SiteSettings, ServeSettings, DEFAULT_THEME_DIR
from .exceptions import ConfigError, ParseError, RenderError, SiteError, SiteIOError
from .logging import setup_logging, set_level

__all__ = [
    "SiteSettings",
    "ServeSettings",
    "DEFAULT_THEME_DIR",
    "ConfigError",
    "ParseError",
    "RenderError",
    "SiteError",
    "SiteIOError",
    "setup_logging",
    "set_level",
]
