# src/finkube/cli/__init__.py
"""
FinKube CLI Package

This package exposes the top-level Typer `app` so tests and the console
entrypoint can import `finkube.cli.app`.
"""

from .main import app

__all__ = ["app"]
