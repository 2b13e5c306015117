"""
Command line interface for the revoke access action.
"""

from .actionctl import cli, main

__all__ = ["cli", "main"]
