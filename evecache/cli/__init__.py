"""Command-line interface for evecache."""

from evecache.cli.app import app, main


__all__ = ["app", "main"]
