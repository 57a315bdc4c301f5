"""apicollect command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``apicollect`` script).
"""

from apicollect.cli.main import cli

__all__ = ["cli"]
