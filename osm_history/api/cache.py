"""
OSM response caching

Handles caching of raw OSM API responses to disk, keyed by request URL
"""

import os
import json
import time
import hashlib
from pathlib import Path
from typing import Callable, Optional
from loguru import logger

SECONDS_PER_DAY = 24 * 60 * 60


class HistoryCache:
    """Caches raw API responses on disk with a fixed time-to-live"""

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        expiry_days: float = 7.0,
        clock: Callable[[], float] = time.time
    ):
        self.cache_dir = cache_dir
        self.ttl = expiry_days * SECONDS_PER_DAY
        self._clock = clock

    @staticmethod
    def generate_key(url: str) -> str:
        """Derive a stable cache key from a normalized request URL"""
        return hashlib.sha256(url.encode("utf-8")).hexdigest()

    def get_cache_path(self, url: str) -> Optional[str]:
        """Get cache file path for a request URL"""
        if not self.cache_dir:
            return None
        return os.path.join(self.cache_dir, f"osm_{self.generate_key(url)[:32]}.json")

    def get(self, url: str) -> Optional[str]:
        """Return the cached response for url, or None on miss or expiry"""
        cache_path = self.get_cache_path(url)
        if not cache_path or not os.path.exists(cache_path):
            return None
        try:
            with open(cache_path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load cache {cache_path}: {e}")
            return None

        if not isinstance(entry, dict):
            logger.warning(f"Ignoring malformed cache entry {cache_path}")
            return None

        if entry.get("url") != url:
            return None

        try:
            age = self._clock() - float(entry.get("stored_at", 0))
            expired = age > float(entry.get("ttl", self.ttl))
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry {cache_path}: {e}")
            return None

        if expired:
            logger.debug(f"Cache entry expired for URL: {url}")
            self.delete(url)
            return None

        value = entry.get("value")
        if not isinstance(value, str):
            logger.warning(f"Ignoring malformed cache entry {cache_path}")
            return None

        logger.debug(f"Cache hit for URL: {url}")
        return value

    def set(self, url: str, value: str) -> bool:
        """Store a response for url. Returns True if it was written."""
        cache_path = self.get_cache_path(url)
        if not cache_path:
            return False
        entry = {
            "key": self.generate_key(url),
            "url": url,
            "value": value,
            "stored_at": self._clock(),
            "ttl": self.ttl,
        }
        try:
            os.makedirs(os.path.dirname(cache_path), exist_ok=True)
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False)
            logger.debug(f"Cached data for URL: {url}")
            return True
        except OSError as e:
            logger.warning(f"Failed to save cache {cache_path}: {e}")
            return False

    def delete(self, url: str) -> None:
        """Remove the entry for url if present"""
        cache_path = self.get_cache_path(url)
        if not cache_path:
            return
        try:
            os.remove(cache_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete cache {cache_path}: {e}")

    def clear(self) -> int:
        """Remove every cached entry. Returns the number of entries removed."""
        if not self.cache_dir or not os.path.isdir(self.cache_dir):
            return 0
        removed = 0
        for path in Path(self.cache_dir).glob("osm_*.json"):
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warning(f"Failed to delete cache {path}: {e}")
        logger.info(f"Cache cleared ({removed} entries)")
        return removed
