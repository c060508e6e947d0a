"""
Logging configuration helpers
"""

import sys
from collections import deque
from typing import Dict, List, Optional

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


class LogBuffer:
    """loguru sink keeping the most recent records in memory"""

    def __init__(self, max_entries: int = 1000):
        self.entries = deque(maxlen=max_entries)

    def write(self, message):
        record = message.record
        self.entries.append({
            "timestamp": record["time"].strftime("%H:%M:%S"),
            "level": record["level"].name,
            "message": record["message"],
        })

    def get_entries(self, level: Optional[str] = None) -> List[Dict[str, str]]:
        if level is None:
            return list(self.entries)
        return [entry for entry in self.entries if entry["level"] == level.upper()]

    def clear(self):
        self.entries.clear()


def setup_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    max_entries: int = 1000
) -> LogBuffer:
    """
    Configure logging

    Replaces loguru's default sink with a coloured stderr sink, an optional
    file sink, and an in-memory buffer of recent records.

    Returns:
        The LogBuffer sink
    """
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if log_file:
        logger.add(log_file, format=FILE_FORMAT, level="DEBUG", encoding="utf-8")

    buffer = LogBuffer(max_entries)
    logger.add(buffer.write, level=level, format="{message}")
    return buffer
