"""
Entry point for running spacekit CLI as a module.

Usage: python -m spacekit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
