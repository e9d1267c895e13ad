"""
SkyChecker Session Cache

In-memory and JSON-file storage for computed observation sessions.
"""

from .session_cache import JsonFileSessionCache, MemorySessionCache, SessionCache

__all__ = ["JsonFileSessionCache", "MemorySessionCache", "SessionCache"]
