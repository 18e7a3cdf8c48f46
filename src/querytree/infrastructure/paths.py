"""
Path utilities and constants.

This module provides the locations where querytree keeps its settings and logs.
"""

import platform
from pathlib import Path


APP_NAME = "querytree"


def get_persistent_data_directory() -> Path:
    """
    Get the persistent data directory for the application (cross-platform).

    Returns:
        Path to the persistent data directory (created if missing).

    Platform-specific locations:
        - Windows: %APPDATA%/LocalLow/querytree
        - macOS: ~/Library/Application Support/querytree
        - Linux: ~/.config/querytree
    """
    system = platform.system()

    if system == "Windows":
        base = Path.home() / "AppData" / "LocalLow"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    data_dir = base / APP_NAME
    data_dir.mkdir(parents=True, exist_ok=True)

    return data_dir


def get_settings_file_path() -> Path:
    """Path to the settings.json file."""
    return get_persistent_data_directory() / "settings.json"


def get_log_file_path() -> Path:
    """Path to the current log.txt file."""
    return get_persistent_data_directory() / "log.txt"


def get_old_log_file_path() -> Path:
    """Path to the log file of the previous session (log.old.txt)."""
    return get_persistent_data_directory() / "log.old.txt"
