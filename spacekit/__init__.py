"""
spacekit - locate, install and run the spacectl CLI in CI jobs.
"""

__version__ = "0.1.0"
