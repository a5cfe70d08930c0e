"""
Configuration management for tasktree.

Loads settings from config.ini with environment variable overrides.
Provides centralized configuration for the database and logging layers.
"""

import configparser
import os
from pathlib import Path
from typing import Optional, Dict, Any

from tasktree.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".tasktree"
DEFAULT_DATABASE_URL = f"sqlite+aiosqlite:///{DEFAULT_DATA_DIR / 'tasktree.db'}"


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name, "").lower()
    if not value:
        return None
    return value in ("1", "true", "yes", "on")


class Config:
    """Application configuration manager."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config file, defaults to ~/.tasktree/config.ini
        """
        self.config_path = config_path or self._default_config_path()
        self._config = configparser.ConfigParser()
        self._load()

    def _default_config_path(self) -> Path:
        """Get default config path."""
        return DEFAULT_DATA_DIR / "config.ini"

    def _load(self):
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                self._config.read(self.config_path)
                logger.info(f"Loaded configuration from {self.config_path}")
            except configparser.Error as e:
                logger.warning(f"Failed to read config file: {e}. Using defaults.")
        else:
            logger.debug(f"Config file not found at {self.config_path}. Using defaults.")

    def get_database_config(self) -> Dict[str, Any]:
        """
        Get database configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKTREE_DATABASE_URL
        - TASKTREE_DATABASE_ECHO

        Returns:
            Dictionary with database configuration
        """
        echo = _env_bool('TASKTREE_DATABASE_ECHO')
        if echo is None:
            echo = self._config.getboolean('database', 'echo', fallback=False)

        config = {
            'url': os.getenv('TASKTREE_DATABASE_URL') or
                   self._config.get('database', 'url', fallback=DEFAULT_DATABASE_URL),
            'echo': echo,
        }

        logger.debug(f"Database config: url={config['url']}, echo={config['echo']}")

        return config

    def get_logging_config(self) -> Dict[str, Any]:
        """
        Get logging configuration with environment overrides.

        Environment variables take precedence over config file:
        - TASKTREE_LOG_LEVEL
        - TASKTREE_LOG_CONSOLE

        Returns:
            Dictionary with logging configuration
        """
        console = _env_bool('TASKTREE_LOG_CONSOLE')
        if console is None:
            console = self._config.getboolean('logging', 'console', fallback=False)

        return {
            'level': (os.getenv('TASKTREE_LOG_LEVEL') or
                      self._config.get('logging', 'level', fallback='INFO')).upper(),
            'console': console,
        }

    def get(self, section: str, key: str, fallback: Any = None) -> Any:
        """
        Get configuration value with fallback.

        Args:
            section: Config section name
            key: Config key name
            fallback: Default value if not found

        Returns:
            Configuration value or fallback
        """
        return self._config.get(section, key, fallback=fallback)

    def get_bool(self, section: str, key: str, fallback: bool = False) -> bool:
        """Get boolean configuration value."""
        return self._config.getboolean(section, key, fallback=fallback)

    def get_int(self, section: str, key: str, fallback: int = 0) -> int:
        """Get integer configuration value."""
        return self._config.getint(section, key, fallback=fallback)

    def has_section(self, section: str) -> bool:
        return self._config.has_section(section)

    def sections(self) -> list:
        return self._config.sections()
