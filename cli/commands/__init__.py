"""
mintreg CLI Commands Package

Command modules for the collectible registry CLI.
"""

__all__ = ['contract', 'keys']
