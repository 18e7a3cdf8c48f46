"""Core domain logic package.

This package contains the condition tree model, the editor operations,
selection handling and query compilation.
Modules here must not import GUI frameworks (PySide6, Qt, etc.).
"""
