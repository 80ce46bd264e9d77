"""Allow running as python -m rpgtranslator."""

from rpgtranslator.cli import app

app()
