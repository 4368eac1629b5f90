"""Arborist - index a directory tree for semantic file search."""

__version__ = "0.1.0"
