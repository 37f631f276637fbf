"""Entry point for `python -m deployhistory`.

Usage:
    python -m deployhistory timeline --releases releases.json
"""

from __future__ import annotations

from deployhistory.cli import cli

cli()
