"""
spacekit CLI module.

This module provides the command-line interface for spacekit.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
