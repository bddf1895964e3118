"""
specreport command line interface.

Replays recorded runner event logs into report artifacts and summarizes
finished run directories.
"""

from .main import cli, main

__all__ = ["cli", "main"]
