"""
Error types raised by the history extractor
"""


class OSMHistoryError(Exception):
    """Base class for all history extractor errors"""


class ValidationError(OSMHistoryError, ValueError):
    """Malformed identifier, disallowed URL or malformed selector. Never retried."""


class NetworkError(OSMHistoryError, RuntimeError):
    """Request failed after exhausting the retry budget."""


class NotFoundError(OSMHistoryError):
    """Element or version is missing (deleted, never existed, or no such version)."""


class MergeError(OSMHistoryError):
    """Merge produced an empty or invalid result."""
