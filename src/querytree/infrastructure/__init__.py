"""
Infrastructure layer package.

This package contains modules for interacting with the outside world:
- Logging configuration and log rotation
- Persistent data paths for settings and logs

Modules here must not import GUI frameworks (PySide6, Qt, etc.).
"""
