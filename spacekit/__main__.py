"""
Entry point for running spacekit CLI as a module.

Usage: python -m spacekit [command] [options]
"""

from spacekit.cli.parser import main

if __name__ == "__main__":
    main()
