"""
Core package for the academic planner.

Holds the consistency engine (entity model, range helpers, rule sets) and the
read-only views built on top of it (statistics, text reports, search).
"""

from importlib import metadata


def get_version() -> str:
    """Return the installed project version."""
    try:
        return metadata.version("acadplan")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]
