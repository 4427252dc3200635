"""
In-memory cache of parsed annotation files

Parsed files are keyed by (path, format) and kept for the lifetime of the
process. There is no eviction or invalidation: a render reads each file once
and the process exits when the document is written.
"""

from dataclasses import dataclass
from pathlib import Path

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FeatureCacheKey:
    """Cache key for one parsed annotation file"""

    path: Path
    format: str

    @classmethod
    def create(cls, path: str | Path, file_format: str) -> "FeatureCacheKey":
        return cls(Path(path).resolve(), file_format.lower())


class FeatureCache:
    """
    Unbounded, process-lifetime memo of parsed files

    Examples:
        >>> cache = FeatureCache()
        >>> key = FeatureCacheKey.create("genes.gff", "gff")
        >>> entries = cache.get(key)
        >>> if entries is None:
        ...     entries = cache.put(key, reader.parse(key.path))
    """

    def __init__(self):
        self._entries: dict[FeatureCacheKey, list] = {}
        self.hits = 0
        self.misses = 0

    def __repr__(self) -> str:
        return f"<FeatureCache: {len(self._entries)} files, {self.hits} hits, {self.misses} misses>"

    def __contains__(self, key: FeatureCacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: FeatureCacheKey):
        entries = self._entries.get(key)
        if entries is None:
            self.misses += 1
        else:
            self.hits += 1
            logger.debug(f"cache hit for {key.path} ({key.format})")
        return entries

    def put(self, key: FeatureCacheKey, entries: list) -> list:
        self._entries[key] = entries
        return entries

    def get_or_load(self, key: FeatureCacheKey, loader):
        """Return cached entries, calling loader() on a miss"""
        entries = self.get(key)
        if entries is None:
            entries = self.put(key, loader())
        return entries
