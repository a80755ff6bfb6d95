"""Command-line interface for the credential store.

Built with Click and Rich.
"""

from authstore.cli.main import cli

__all__ = ["cli"]
