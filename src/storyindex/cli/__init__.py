"""
Command-line interface for storyindex.

The ``storyindex`` command builds an index from specifiers given on the
command line or in a TOML file and prints it.
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
