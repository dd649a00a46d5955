"""
Database models for the digest cache
"""

from .cached_digest import CachedDigest

__all__ = [
    "CachedDigest",
]
