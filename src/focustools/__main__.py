"""Allow running as ``python -m focustools``."""

from focustools.cli.main import app

app()
