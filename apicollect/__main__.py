"""Entry point for `python -m apicollect`.

Usage:
    python -m apicollect collect --content ds.xml --profile <id> --resultdir /out
"""

from __future__ import annotations

from apicollect.cli import cli

cli()
