"""
releasefetch - GitHub release asset downloader.

Resolves a release of an ``owner/repo`` project against selection criteria,
works out which assets (and source archives) belong to it, and downloads them
concurrently into a local directory.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
