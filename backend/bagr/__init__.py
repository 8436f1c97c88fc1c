"""
Bagr: build and share a disc golf bag.

Disc photo cropping, dominant color sampling and bag share links.
"""

__version__ = "1.0.0"
