"""
CLI entry point for storyindex.

Runs when the package is executed with ``python -m storyindex.cli``.
"""

from .main import cli

if __name__ == "__main__":
    cli()
