"""gitprefetch command line interface."""

from gitprefetch.cli.main import cli

__all__ = ["cli"]
