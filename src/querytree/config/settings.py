"""
Application settings and configuration.

This module provides centralized access to application settings with automatic
persistence to disk. Settings are stored as JSON in a platform-specific location:

- Windows: %APPDATA%/LocalLow/querytree/settings.json
- macOS: ~/Library/Application Support/querytree/settings.json
- Linux: ~/.config/querytree/settings.json

Settings are automatically loaded on first access and saved when updated.

Example:
    from querytree.config.settings import get_settings, get_settings_manager

    # Get current settings
    settings = get_settings()
    print(settings.group_operator)

    # Update settings (auto-saves)
    manager = get_settings_manager()
    manager.update(theme="light_blue", require_valid_items=True)

    # Remember a query that was searched (auto-saves)
    manager.add_recent_query({"gene": {"relation": "eq", "terms": [1100]}})
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional

from ..core.conditions import ConditionCatalog, default_catalog, load_catalog
from ..core.nodes import LogicalOperator
from ..infrastructure.paths import get_settings_file_path, get_log_file_path


PATH_FIELDS = ('log_file_path', 'condition_catalog_file')


@dataclass
class AppSettings:
    """Application-wide settings."""

    # Logging settings
    log_level: int = logging.INFO
    log_to_file: bool = True
    log_file_path: Optional[Path] = None

    # UI settings
    window_width: int = 1000
    window_height: int = 700
    theme: str = "dark_teal"  # Available: dark_blue, dark_teal, dark_amber, light_blue, light_teal, light_amber

    # Editor settings
    root_operator: str = LogicalOperator.AND.value
    group_operator: str = LogicalOperator.OR.value
    require_valid_items: bool = False  # Only search once every condition is valid
    condition_catalog_file: Optional[Path] = None  # None = built-in catalog

    # Recent searches
    recent_queries: list[dict[str, Any]] = field(default_factory=list)
    max_recent_items: int = 10

    def __post_init__(self):
        if self.log_file_path is None:
            self.log_file_path = get_log_file_path()


class SettingsManager:
    """
    Manages loading and saving application settings.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize the settings manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        if config_file is None:
            config_file = get_settings_file_path()

        self.config_file = config_file
        self._settings = AppSettings()
        self._logger = logging.getLogger(__name__)

    def load(self) -> AppSettings:
        """
        Load settings from configuration file.

        Unknown keys are ignored and unreadable files leave the defaults in place.

        Returns:
            The loaded settings object.
        """
        if not self.config_file.exists():
            self._logger.info(f"Settings file not found at {self.config_file}, using defaults")
            return self._settings

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            for key in PATH_FIELDS:
                if data.get(key):
                    data[key] = Path(data[key])

            for key, value in data.items():
                if hasattr(self._settings, key):
                    setattr(self._settings, key, value)
                else:
                    self._logger.warning(f"Ignoring unknown setting in file: {key}")

            self._logger.info(f"Settings loaded from {self.config_file}")

        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse settings file: {e}. Using defaults.")
        except OSError as e:
            self._logger.error(f"Failed to load settings: {e}. Using defaults.")

        return self._settings

    def save(self, settings: Optional[AppSettings] = None) -> None:
        """
        Save settings to configuration file.

        Args:
            settings: Settings object to save. If None, saves current settings.
        """
        if settings is not None:
            self._settings = settings

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            data = asdict(self._settings)

            # Paths are stored with forward slashes
            for key in PATH_FIELDS:
                if data.get(key):
                    data[key] = str(Path(data[key])).replace('\\', '/')

            # Atomic write: write to temp file, then rename
            temp_file = self.config_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.config_file)

            self._logger.info(f"Settings saved to {self.config_file}")

        except (OSError, TypeError) as e:
            self._logger.error(f"Failed to save settings: {e}")

    def get(self) -> AppSettings:
        """
        Get the current settings.

        Returns:
            The current settings object.
        """
        return self._settings

    def update(self, **kwargs) -> None:
        """
        Update specific settings and auto-save.

        Args:
            **kwargs: Setting names and values to update.
        """
        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)
            else:
                self._logger.warning(f"Ignoring unknown setting: {key}")

        self.save()

    def add_recent_query(self, query: dict[str, Any]) -> None:
        """
        Put a query at the front of the recent queries list.

        Args:
            query: Compiled query that was searched.
        """
        if not query:
            return

        recent = [q for q in self._settings.recent_queries if q != query]
        recent.insert(0, query)
        self._settings.recent_queries = recent[:self._settings.max_recent_items]

        self.save()


def get_condition_catalog(settings: AppSettings) -> ConditionCatalog:
    """
    Get the condition catalog configured in the settings.

    Falls back to the built-in catalog when no file is configured or the
    configured file cannot be read.
    """
    if settings.condition_catalog_file is None:
        return default_catalog()
    try:
        return load_catalog(Path(settings.condition_catalog_file))
    except (OSError, json.JSONDecodeError, ValueError) as e:
        logging.getLogger(__name__).error(
            f"Failed to load condition catalog {settings.condition_catalog_file}: {e}. Using built-in catalog."
        )
        return default_catalog()


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """
    Get the global settings manager instance.

    Returns:
        The global SettingsManager.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
        _settings_manager.load()
    return _settings_manager


def get_settings() -> AppSettings:
    """
    Get the current application settings.

    Returns:
        The current AppSettings object.
    """
    return get_settings_manager().get()
