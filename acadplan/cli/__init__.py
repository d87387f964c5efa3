"""Typer entry points."""
