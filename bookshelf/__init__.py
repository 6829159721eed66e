"""
Bookshelf - private book collections and a shared catalog, behind token
authentication and per-book ownership checks.
"""

__version__ = "0.1.0"
