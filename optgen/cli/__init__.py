"""Command-line interface for optgen.

Example Usage
-------------
    # From command line:
    optgen --help
    optgen validate
    optgen options --chip esp32c3
    optgen resolve --chip esp32c6 -o wifi -o log --csv out/options.csv
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
