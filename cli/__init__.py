"""
Collectible Registry CLI Package

Command line front-end for the capped-mint collectible registry.
"""

__version__ = "0.1.0"
