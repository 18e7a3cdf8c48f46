"""
querytree - An advanced search condition builder.

This package provides tools for building nested AND/OR search conditions
as an editable tree and compiling them into the query objects consumed
by a search backend.
"""

__version__ = "0.1.0"
