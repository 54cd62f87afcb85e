"""CLI module for Tag Insight.

This package provides the command-line interface for auditing captured
request batches and inspecting the vendor registry and rule catalog.
"""

from .main import ExitCode, app, cli_main

__all__ = [
    'ExitCode',
    'app',
    'cli_main',
]
