"""Command line interface for neurosched."""

from neurosched.cli.main import app, main

__all__ = ["app", "main"]
