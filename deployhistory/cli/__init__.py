"""deployhistory command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``deployhistory`` script).
"""

from deployhistory.cli.main import cli

__all__ = ["cli"]
