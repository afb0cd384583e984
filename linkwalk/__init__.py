# linkwalk/__init__.py
"""
LinkWalk package initializer.
Defines package version and exposes the CLI.
"""
__version__ = "0.1.0"

from linkwalk.cli import cli  # noqa: E402

__all__ = ["__version__", "cli"]
