"""
Lisk forging watcher: keeps a forging node updated, in sync and forging.
"""

__version__ = "1.0.0"
